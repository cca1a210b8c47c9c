"""Shared fixtures: a small in-memory definitions tree."""

import json

import pytest

from common.fs import Dir, InMemoryFS


def _tsconfig(*files):
    return json.dumps({"compilerOptions": {"strict": True}, "files": list(files)}, indent=4)


def build_definitions_tree() -> Dir:
    """Root of a definitions checkout with a handful of packages under ``types/``."""
    root = Dir(None)
    types = root.subdir("types")

    boring = types.subdir("boring")
    boring.add_file("index.d.ts", """// Type definitions for boring 1.0
// Project: https://boring.com
// Definitions by: Some Guy From Space <https://github.com/goodspaceguy420>
// Definitions: https://github.com/DefinitelyTyped/DefinitelyTyped

import * as React from 'react';
export const drills: number;
""")
    boring.add_file("secondary.d.ts", """
import deffo from 'react-default';
import { mammoths } from 'boring/quaternary';
export const hovercars: unknown;
declare module "boring/fake" {
    import { stock } from 'boring/tertiary';
}
declare module "other" {
    export const augmented: true;
}
""")
    boring.add_file("tertiary.d.ts", """
import { stuff } from 'things';
export var stock: number;
""")
    boring.add_file("quaternary.d.ts", """
export const mammoths: object;
""")
    boring.add_file("commonjs.d.ts", """
import vortex = require('vorticon');
declare const korporate: vortex;
export = korporate;
""")
    boring.add_file("v1.d.ts", """
export const inane: true | false;
""")
    boring.add_file("untested.d.ts", """
import { help } from 'manual';
export const fungible: false;
""")
    boring.add_file("boring-tests.ts", """
import { superstor } from "super-big-fun-hus";
import { drills } from "boring";
import { hovercars } from "boring/secondary";
import { inane } from "boring/v1";
import { mammoths } from "boring/quaternary";
import { stock } from "boring/tertiary";
import { korporate } from "boring/commonjs";
""")
    boring.add_file("OTHER_FILES.txt", "untested.d.ts\n")
    boring.add_file("tsconfig.json", _tsconfig("index.d.ts", "boring-tests.ts"))

    globby = types.subdir("globby")
    globby.add_file("index.d.ts", """// Type definitions for globby 0.2
// Project: https://globby.com
/// <reference path="./sneaky.d.ts" />
/// <reference types="andere/snee" />
declare var x: number
""")
    globby.add_file("merges.d.ts", """
declare function merge(): void;
""")
    globby.add_file("sneaky.d.ts", """
declare const sneaky: string;
""")
    globby.add_file("globby-tests.ts", """/// <reference path="merges.d.ts" />
merge();
""")
    globby.add_file("test/other-tests.ts", """/// <reference types="other" />
sneaky.length;
""")
    globby.add_file("tsconfig.json", _tsconfig("index.d.ts", "globby-tests.ts", "test/other-tests.ts"))

    jquery = types.subdir("jquery")
    jquery.add_file("JQuery.d.ts", """
declare var jQuery: 1;
""")
    jquery.add_file("index.d.ts", """// Type definitions for jquery 3.3
// Project: https://jquery.com
// Definitions by: Alpha <https://github.com/alpha>,
//                 Beta <https://github.com/beta>
// Definitions: https://github.com/DefinitelyTyped/DefinitelyTyped

/// <reference path="JQuery.d.ts" />

export = jQuery;
""")
    jquery.add_file("jquery-tests.ts", """
console.log(jQuery);
""")
    jquery.add_file("tsconfig.json", _tsconfig("index.d.ts", "jquery-tests.ts"))
    jquery.add_file("v1/index.d.ts", """// Type definitions for jquery 1.12
// Project: https://jquery.com

declare var jQuery: 1;
""")
    jquery.add_file("v1/jquery-tests.ts", """
jQuery;
""")
    jquery.add_file("v1/tsconfig.json", _tsconfig("index.d.ts", "jquery-tests.ts"))

    cyclic = types.subdir("cyclic")
    cyclic.add_file("index.d.ts", """// Type definitions for cyclic 2.1
/// <reference path="a.d.ts" />
export const c: number;
""")
    cyclic.add_file("a.d.ts", """/// <reference path="b.d.ts" />
export const a: number;
""")
    cyclic.add_file("b.d.ts", """/// <reference path="a.d.ts" />
export const b: number;
""")
    cyclic.add_file("tsconfig.json", _tsconfig("index.d.ts"))

    scoped = types.subdir("ember__object")
    scoped.add_file("index.d.ts", """// Type definitions for @ember/object 3.1
import "@ember/object";
import { computed } from "@ember/object/computed";
import Engine from "@ember/engine";
export default class EmberObject {}
""")
    scoped.add_file("computed.d.ts", """
export function computed(): void;
""")
    scoped.add_file("ember__object-tests.ts", """
import EmberObject from "@ember/object";
import { computed } from "@ember/object/computed";
import { run } from "@ember/runloop";
""")
    scoped.add_file("tsconfig.json", _tsconfig("index.d.ts", "ember__object-tests.ts"))

    pinned = types.subdir("pinned")
    pinned.add_file("index.d.ts", """// Type definitions for pinned 1.0
/// <reference types="jquery/v1" />
export const p: number;
""")
    pinned.add_file("tsconfig.json", _tsconfig("index.d.ts"))

    broken = types.subdir("broken")
    broken.add_file("tsconfig.json", _tsconfig("index.d.ts", "broken-tests.ts"))
    broken.add_file("broken-tests.ts", "")

    return root


@pytest.fixture
def definitions_fs():
    """View of the whole definitions tree."""
    return InMemoryFS(build_definitions_tree(), "DefinitelyTyped")


@pytest.fixture
def types_fs(definitions_fs):
    """View of the ``types/`` directory."""
    return definitions_fs.sub_dir("types")

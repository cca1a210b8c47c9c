"""Tests for the affected-set computation."""

import pytest

from analysis.affected import get_affected_packages, get_reverse_dependencies
from definitions.packages import AllPackages
from versioning.models import LATEST, PackageChange, Version, VersionConstraint


def typings_entry(name, major=1, minor=0, dependencies=None, test_dependencies=None):
    return {
        "libraryName": name,
        "typingsPackageName": name,
        "libraryMajorVersion": major,
        "libraryMinorVersion": minor,
        "dependencies": dependencies or {},
        "testDependencies": test_dependencies or [],
    }


def single(name, dependencies=None, test_dependencies=None):
    return {"1.0": typings_entry(name, dependencies=dependencies, test_dependencies=test_dependencies)}


@pytest.fixture
def all_packages():
    return AllPackages.from_data({
        "jquery": {"1.0": typings_entry("jquery", 1), "2.0": typings_entry("jquery", 2)},
        "known": single("known", dependencies={"jquery": {"major": 1}}),
        "known-test": single("known-test", test_dependencies=["jquery"]),
        "most-recent": single("most-recent", dependencies={"jquery": "*"}),
        "unknown": single("unknown", dependencies={"COMPLETELY-UNKNOWN": {"major": 1}}),
        "unknown-test": single("unknown-test", test_dependencies=["WAT"]),
        "dependent-of-dependent": single("dependent-of-dependent", dependencies={"most-recent": "*"}),
        "dependent-of-test-dependent": single("dependent-of-test-dependent", dependencies={"known-test": "*"}),
        "test-dependent-of-dependent": single("test-dependent-of-dependent", test_dependencies=["most-recent"]),
        "test-dependent-of-test-dependent": single(
            "test-dependent-of-test-dependent", test_dependencies=["known-test"]
        ),
    })


def ids(packages):
    return [str(p.id) for p in packages]


class TestGetAffectedPackages:
    """Changed versions and their dependents."""

    def test_latest_major(self, all_packages):
        """Test changing the latest major rebuilds its runtime and test dependents."""
        affected = get_affected_packages(all_packages, [PackageChange("jquery", VersionConstraint(2))])
        assert ids(affected.changed_packages) == ["jquery@2.0"]
        assert ids(affected.dependent_packages) == [
            "dependent-of-dependent@1.0",
            "known-test@1.0",
            "most-recent@1.0",
            "test-dependent-of-dependent@1.0",
        ]

    def test_latest_constraint_is_the_latest_major(self, all_packages):
        """Test that an unconstrained change selects the latest major."""
        by_major = get_affected_packages(all_packages, [PackageChange("jquery", VersionConstraint(2))])
        by_latest = get_affected_packages(all_packages, [PackageChange("jquery", LATEST)])
        assert by_latest == by_major

    def test_older_major(self, all_packages):
        """Test changing an older major only reaches packages pinned to it."""
        affected = get_affected_packages(all_packages, [PackageChange("jquery", VersionConstraint(1))])
        assert ids(affected.changed_packages) == ["jquery@1.0"]
        assert ids(affected.dependent_packages) == ["known@1.0", "known-test@1.0"]

    def test_exact_version(self, all_packages):
        """Test an exact major.minor change."""
        affected = get_affected_packages(all_packages, [PackageChange("jquery", VersionConstraint(1, 0))])
        assert ids(affected.changed_packages) == ["jquery@1.0"]
        assert ids(affected.dependent_packages) == ["known@1.0", "known-test@1.0"]

    def test_test_dependents_track_every_version(self, all_packages):
        """Test that test dependents are affected by a change to any version."""
        for major in (1, 2):
            affected = get_affected_packages(all_packages, [PackageChange("jquery", VersionConstraint(major))])
            assert "known-test@1.0" in ids(affected.dependent_packages)

    def test_dependents_of_test_dependents_are_not_rebuilt(self, all_packages):
        """Test that dependents of test-only dependents are not reported."""
        affected = get_affected_packages(all_packages, [PackageChange("jquery", VersionConstraint(2))])
        assert "dependent-of-test-dependent@1.0" not in ids(affected.dependent_packages)
        assert "test-dependent-of-test-dependent@1.0" not in ids(affected.dependent_packages)

    def test_changing_a_test_dependency_target(self, all_packages):
        """Test changing a package that others only use in tests."""
        affected = get_affected_packages(all_packages, [PackageChange("known-test", LATEST)])
        assert ids(affected.changed_packages) == ["known-test@1.0"]
        assert ids(affected.dependent_packages) == [
            "dependent-of-test-dependent@1.0",
            "test-dependent-of-test-dependent@1.0",
        ]

    def test_deleted_test_dependency(self, all_packages):
        """Test that test dependents of a deleted package are reported."""
        affected = get_affected_packages(all_packages, [PackageChange("WAT", LATEST)])
        assert affected.changed_packages == []
        assert ids(affected.dependent_packages) == ["unknown-test@1.0"]

    def test_deleted_runtime_dependency(self, all_packages):
        """Test that runtime dependents of a deleted package are reported."""
        affected = get_affected_packages(all_packages, [PackageChange("COMPLETELY-UNKNOWN", VersionConstraint(1))])
        assert affected.changed_packages == []
        assert ids(affected.dependent_packages) == ["unknown@1.0"]

    def test_unknown_version_of_known_package(self, all_packages):
        """Test a constraint that matches no version of a known package."""
        affected = get_affected_packages(all_packages, [PackageChange("jquery", VersionConstraint(3))])
        assert affected.changed_packages == []
        assert affected.dependent_packages == []

    def test_no_dependents(self, all_packages):
        """Test a changed package nothing depends on."""
        affected = get_affected_packages(all_packages, [PackageChange("dependent-of-dependent", LATEST)])
        assert ids(affected.changed_packages) == ["dependent-of-dependent@1.0"]
        assert affected.dependent_packages == []

    def test_empty_changes(self, all_packages):
        """Test that no changes yield an empty result."""
        affected = get_affected_packages(all_packages, [])
        assert affected.changed_packages == []
        assert affected.dependent_packages == []

    def test_changed_packages_are_not_dependents(self, all_packages):
        """Test that changed packages are never listed as dependents."""
        affected = get_affected_packages(all_packages, [
            PackageChange("most-recent", LATEST),
            PackageChange("jquery", VersionConstraint(2)),
        ])
        assert ids(affected.changed_packages) == ["jquery@2.0", "most-recent@1.0"]
        assert ids(affected.dependent_packages) == [
            "dependent-of-dependent@1.0",
            "known-test@1.0",
            "test-dependent-of-dependent@1.0",
        ]

    def test_duplicate_changes(self, all_packages):
        """Test that overlapping changes select a version once."""
        affected = get_affected_packages(all_packages, [
            PackageChange("jquery", VersionConstraint(1)),
            PackageChange("jquery", VersionConstraint(1, 0)),
        ])
        assert ids(affected.changed_packages) == ["jquery@1.0"]

    def test_registry_is_not_mutated(self, all_packages):
        """Test that computing the affected set leaves the registry untouched."""
        before = all_packages.to_types_data()
        get_affected_packages(all_packages, [PackageChange("jquery", LATEST)])
        assert all_packages.to_types_data() == before


class TestTransitiveClosure:
    """Longer dependency chains."""

    def test_test_dependent_of_runtime_dependent(self):
        """Test that a test dependent of a runtime dependent is reported."""
        all_packages = AllPackages.from_data({
            "z": single("z"),
            "y": single("y", dependencies={"z": "*"}),
            "x": single("x", test_dependencies=["y"]),
        })
        affected = get_affected_packages(all_packages, [PackageChange("z", LATEST)])
        assert ids(affected.dependent_packages) == ["x@1.0", "y@1.0"]

    def test_runtime_chain_and_cycle(self):
        """Test transitive runtime dependents across a cycle."""
        all_packages = AllPackages.from_data({
            "a": single("a", dependencies={"c": "*"}),
            "b": single("b", dependencies={"a": "*"}),
            "c": single("c", dependencies={"b": "*"}),
            "d": single("d", dependencies={"c": "*"}),
        })
        affected = get_affected_packages(all_packages, [PackageChange("a", LATEST)])
        assert ids(affected.changed_packages) == ["a@1.0"]
        assert ids(affected.dependent_packages) == ["b@1.0", "c@1.0", "d@1.0"]

    def test_pinned_dependents_of_old_versions(self):
        """Test dependents pinned to an older major of an intermediate package."""
        all_packages = AllPackages.from_data({
            "base": {"1.0": typings_entry("base", 1), "2.0": typings_entry("base", 2)},
            "mid": {
                "1.0": typings_entry("mid", 1, dependencies={"base": {"major": 1}}),
                "2.0": typings_entry("mid", 2, dependencies={"base": "*"}),
            },
            "top": single("top", dependencies={"mid": {"major": 1}}),
        })
        affected = get_affected_packages(all_packages, [PackageChange("base", VersionConstraint(1))])
        assert ids(affected.dependent_packages) == ["mid@1.0", "top@1.0"]
        affected = get_affected_packages(all_packages, [PackageChange("base", LATEST)])
        assert ids(affected.dependent_packages) == ["mid@2.0"]

    def test_results_sorted_by_name_then_version(self):
        """Test that dependents are sorted by name and then version."""
        all_packages = AllPackages.from_data({
            "base": single("base"),
            "mid": {
                "1.0": typings_entry("mid", 1, dependencies={"base": "*"}),
                "2.0": typings_entry("mid", 2, dependencies={"base": "*"}),
            },
            "aardvark": single("aardvark", dependencies={"mid": "*"}),
        })
        affected = get_affected_packages(all_packages, [PackageChange("base", LATEST)])
        assert ids(affected.dependent_packages) == ["aardvark@1.0", "mid@1.0", "mid@2.0"]
        assert [p.version for p in affected.dependent_packages[1:]] == [Version(1, 0), Version(2, 0)]


class TestReverseDependencies:
    """Reverse edges."""

    def test_edges(self, all_packages):
        """Test the reverse edges, including those to unknown names."""
        reverse = get_reverse_dependencies(all_packages)
        jquery_2 = {str(pid): dep.runtime for pid, dep in reverse[("jquery", Version(2, 0))].items()}
        assert jquery_2 == {"known-test@1.0": False, "most-recent@1.0": True}
        jquery_1 = {str(pid): dep.runtime for pid, dep in reverse[("jquery", Version(1, 0))].items()}
        assert jquery_1 == {"known@1.0": True, "known-test@1.0": False}
        assert set(str(pid) for pid in reverse[("WAT", None)]) == {"unknown-test@1.0"}
        assert set(str(pid) for pid in reverse[("COMPLETELY-UNKNOWN", None)]) == {"unknown@1.0"}

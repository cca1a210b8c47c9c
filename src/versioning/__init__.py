"""Version model, constraint parsing and scoped-name mangling for typings packages."""

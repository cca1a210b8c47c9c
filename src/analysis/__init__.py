"""Graph analyses over the typings registry."""

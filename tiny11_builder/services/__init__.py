"""Network and operator-facing services used by the build."""

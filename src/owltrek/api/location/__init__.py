"""Location subpackage: observer location and weather."""

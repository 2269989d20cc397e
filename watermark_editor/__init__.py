"""Desktop editor for selecting and removing image watermarks."""

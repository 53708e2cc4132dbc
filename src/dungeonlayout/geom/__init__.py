"""Rectangle geometry and edge extraction."""

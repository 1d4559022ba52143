"""Terminal rendering and the interactive loop."""

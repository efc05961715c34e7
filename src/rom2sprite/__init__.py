"""Console entry point for rom2spritesheet."""

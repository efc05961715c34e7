"""Sprite sheet extraction from Game Boy Advance ROM images."""

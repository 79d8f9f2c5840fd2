"""Colour and composition features for still images."""

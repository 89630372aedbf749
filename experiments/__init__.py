"""Sweep definitions and the batch driver for the slotted queue experiments."""

"""SwapUnits — unit conversion service."""

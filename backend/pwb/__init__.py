"""PropertyWebBuilder backend."""

"""Qt presentation seam for the move tree."""

"""Wave Function Collapse tile maps constrained by randomly carved mazes."""

"""Live NBA data path: fetch, normalize, cache, diff and stream."""

"""Product editor - catalog product drafts, variant sync and save pipeline."""

"""Full-text article extraction."""

"""Full-screen terminal UI for ccm (textual) and its non-terminal fallbacks."""

"""Chat line models, classification and the scrollback buffer."""

"""RailOptima train operations engine."""

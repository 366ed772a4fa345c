"""Interactive Textual dashboard: card grid, drill-down and command line."""

"""Browser automation for the Pandora Campus reader."""

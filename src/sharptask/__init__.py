"""sharptask - sync Obsidian task lines with Taskwarrior."""

__version__ = "0.1.0"

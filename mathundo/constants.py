"""Constants and configuration for the mathundo history manager."""

class HistoryConstants:
    """Central configuration constants for undo history."""
    
    # History bounds
    MAXIMUM_DEPTH = 1000  # Maximum number of undo/redo states
    MAXIMUM_DEPTH_LIMIT = 100000  # Upper bound accepted from user settings
    
    # Selection path used when restoring an absent snapshot
    ROOT_SELECTION_PATH = [{"relation": "body", "offset": 0}]
    
    # Restore always re-materializes content as LaTeX in math mode
    RESTORE_FORMAT = "latex"
    RESTORE_MODE = "math"
    
    # Settings storage
    SETTINGS_APP_NAME = "mathundo"
    SETTINGS_APP_AUTHOR = "mathundo"
    SETTINGS_FILENAME = "settings.json"
    
    # Status messages
    UNDONE_MESSAGE = "Undone"
    NOTHING_TO_UNDO_MESSAGE = "Nothing to undo"
    REDONE_MESSAGE = "Redone"
    NOTHING_TO_REDO_MESSAGE = "Nothing to redo"

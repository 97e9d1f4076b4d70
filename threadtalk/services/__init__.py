"""Speech, transcription and chat adapters plugged into the session."""

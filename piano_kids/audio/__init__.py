"""Signal processing and audio input for note detection."""

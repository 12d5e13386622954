"""breathcam: camera preview with a start/stop detecting session."""

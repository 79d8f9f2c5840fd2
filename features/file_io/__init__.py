"""Media I/O: probing, frame sampling, audio extraction, image loading."""

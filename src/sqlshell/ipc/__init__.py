"""Process, framing and decoding layer for talking to the shell."""

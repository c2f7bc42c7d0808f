"""StyleLens image analysis API."""

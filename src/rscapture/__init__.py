"""rscapture - synchronized depth camera capture to PNG and metadata CSV.

Pulls depth, color and two infrared frames per bundle from a depth camera,
previews them in a four-quadrant window and writes every frame to disk.
"""

__version__ = "0.1.0"

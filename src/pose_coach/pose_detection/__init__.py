"""
Pose detector adapters producing LandmarkFrames.
"""

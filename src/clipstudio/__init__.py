"""clipstudio — multi-clip video composition specs for a remote renderer.

Build layered layouts (canvas, layers, transforms, effects, z-order) or
templated clip sequences (layout, pacing, animation, beat-synced music
video, podcast, social formats), estimate their credit cost and
processing time, and submit them to the rendering service.
"""

"""Core rendering primitives for blobmask.

Modules:
- surface: RGBA raster with composite modes and a logical-to-pixel scale
- viewport: keeps the mask and accumulation surfaces sized together
- blobs: time-driven organic outlines
- compositor: per-frame mask painting and the render loop
- eraser: pointer drags baked into the accumulation surface
- overlay: mount/unmount lifecycle against a host
"""

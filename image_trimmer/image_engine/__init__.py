"""Image Engine - I/O collaborators around the trimmer.

This package provides everything that touches files or databases:
- Image decoding and encoding (decoder)
- OLE envelope stripping (ole)
- Access database extraction (access_db)

Usage:
    from image_trimmer.image_engine.decoder import decode_file, save_image

    buffer = decode_file("/path/to/image.png")
    save_image(buffer, "/path/to/out", "image")
"""

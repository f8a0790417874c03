#!/usr/bin/env python3
"""
Example usage of the coloring core.

This script plays the part of the app around the core:
1. Decode an image and hand it to an edit session
2. Fill a few regions and draw a brush stroke
3. Walk the undo/redo history
"""

import logging
import os
import sys

from PIL import Image

from coloring_book import EditSession, PixelBuffer, SessionConfig, count_regions, generate_palette


def demo_session(image_path: str, output_dir: str = "output"):
    """Colour an image the way the painting screen would."""

    if not os.path.exists(image_path):
        print(f"Error: Image file {image_path} not found")
        return

    print(f"Colouring image: {image_path}")
    print("=" * 50)

    with Image.open(image_path) as img:
        source = PixelBuffer.from_image(img)

    session = EditSession(SessionConfig(cluster_count=12))
    session.load_image(source)
    page = session.buffer
    print(f"Pipeline: {session.last_pipeline.value}")
    print(f"Prepared page: {page.width}x{page.height}, {count_regions(page)} regions")

    palette = generate_palette()
    w, h = page.width, page.height

    # 1. Fill the four quadrant centres with different colours
    print("\n1. Filling regions:")
    for i, (x, y) in enumerate([(w // 4, h // 4), (3 * w // 4, h // 4), (w // 4, 3 * h // 4), (3 * w // 4, 3 * h // 4)]):
        color = palette[i * 20 + 4]
        session.select_color(color)
        session.fill(x, y)
        print(f"   fill ({x}, {y}) with {color.to_hex()}")

    # 2. One brush stroke across the middle
    print("\n2. Brush stroke:")
    session.set_drawing_mode("brush")
    session.select_color(palette[41])
    session.drag([(x, h // 2) for x in range(0, w, max(1, w // 20))])
    print(f"   history: {session.history_labels}")

    os.makedirs(output_dir, exist_ok=True)
    base = os.path.splitext(os.path.basename(image_path))[0]
    session.buffer.to_image().save(os.path.join(output_dir, f"{base}_colored.png"))

    # 3. Undo everything, then redo the fills
    print("\n3. Undo / redo:")
    undone = 0
    while session.undo():
        undone += 1
    print(f"   undid {undone} steps, back to initial: {session.buffer == page}")
    for _ in range(4):
        session.redo()
    print(f"   redo available: {session.can_redo}")


def main():
    logging.basicConfig(level=logging.INFO, format="%(asctime)s [%(levelname)s] %(name)s: %(message)s")
    if len(sys.argv) < 2:
        print("Usage: python example_usage.py <image_path>")
        return
    demo_session(sys.argv[1])


if __name__ == "__main__":
    main()

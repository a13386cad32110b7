"""Live command - interactive webcam window."""

import asyncio
import logging
from pathlib import Path

from facelens.cli.utils import build_config

logger = logging.getLogger(__name__)


def run_live(args):
    """Open the camera window and run until the user quits."""
    from facelens.app import FaceLensApp
    from facelens.errors import DecodeFailedError
    from facelens.sources import StillImageSource, decode_image

    config = build_config(args)

    source = None
    if args.loop_image:
        try:
            source = StillImageSource(decode_image(args.loop_image))
        except DecodeFailedError as e:
            print(f"Error: {e}")
            return 1

    image_path = Path(args.image) if args.image else None

    print("facelens live")
    print("=" * 50)
    print(f"  Source:  {args.loop_image or f'camera {config.camera.index}'}")
    print(f"  Period:  {config.scheduler.period_sec:.2f}s")
    print(f"  Device:  {config.analyzer.device}")
    print("  Keys:    s=start/stop  u=upload  q/ESC=quit")
    print("-" * 50)

    app = FaceLensApp(config, source=source)
    try:
        asyncio.run(app.run(image_path=image_path, autostart=args.autostart))
    except KeyboardInterrupt:
        print("\nInterrupted")
    return 0

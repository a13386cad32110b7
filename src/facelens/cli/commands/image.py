"""Image command - one-shot analysis of a still image."""

import asyncio
import logging

from facelens.cli.utils import build_config

logger = logging.getLogger(__name__)


def run_image(args):
    """Analyze one image, print a face summary and optionally save/show it."""
    import cv2

    from facelens.analyzer import FaceAnalyzer
    from facelens.errors import ModelUnavailableError
    from facelens.store import ResultStore
    from facelens.upload import UploadPipeline
    from facelens.viz.compositor import expression_summary, info_lines
    from facelens.viz.display import LiveWindow, compose_view
    from facelens.viz.panel import build_panel

    config = build_config(args)
    store = ResultStore()
    analyzer = FaceAnalyzer.from_settings(config.analyzer)
    try:
        analyzer.initialize()
    except ModelUnavailableError as e:
        print(f"Error: {e}")
        return 1

    pipeline = UploadPipeline(
        analyzer,
        store,
        config.upload,
        show_expression_breakdown=config.display.show_expression_breakdown,
    )
    try:
        result = asyncio.run(pipeline.process(args.path))
    finally:
        analyzer.cleanup()

    if result is None:
        status = store.status
        print(f"Error: {status.kind.value}: {status.message}")
        return 1

    print(f"{args.path}: {len(result.faces)} face(s)")
    labels = expression_summary(result.faces)
    for face in result.faces:
        title, age_text, gender_text = info_lines(face)
        label = labels.get(face.index) or "-"
        print(f"  {title}: {age_text}, {gender_text}, expression {label}, score {face.score:.2f}")

    snap = store.snapshot()
    view = compose_view(
        result.overlay,
        build_panel(snap.faces, snap.is_processing, snap.status),
        config.display.panel_width,
    )

    if args.output:
        if not cv2.imwrite(args.output, view):
            print(f"Error: cannot write {args.output}")
            return 1
        print(f"Saved: {args.output}")

    if not args.no_window:
        window = LiveWindow(config.display.title, config.display.panel_width, wait_ms=0)
        try:
            window.show(result.overlay, build_panel(snap.faces, snap.is_processing, snap.status))
        finally:
            window.close()

    return 0

"""Info command for facelens CLI.

Shows backend availability, model location and the resolved configuration.
"""


def run_info(args):
    """Show system information and available components."""
    from facelens.cli.utils import build_config

    config = build_config(args)

    print("facelens - System Information")
    print("=" * 60)

    _print_version_info()

    print("\n[Backends]")
    print("-" * 60)
    _check_face_backend()
    _check_expression_backend()

    print("\n[Paths]")
    print("-" * 60)
    _print_paths(config)

    print("\n[Config]")
    print("-" * 60)
    _print_config(config)
    return 0


def _print_version_info():
    try:
        from facelens import __version__
        print(f"  facelens: {__version__}")
    except ImportError:
        print("  facelens: (version not available)")

    import cv2
    import numpy

    print(f"  opencv:   {cv2.__version__}")
    print(f"  numpy:    {numpy.__version__}")


def _check_face_backend():
    """Check InsightFace availability."""
    try:
        import insightface
        import onnxruntime as ort

        providers = ", ".join(ort.get_available_providers())
        print("  [+] Face analysis")
        print(f"        Backend:   InsightFace (v{insightface.__version__})")
        print(f"        Providers: {providers}")
    except ImportError:
        print("  [-] Face analysis")
        print("        Backend: NOT AVAILABLE (install insightface and onnxruntime)")


def _check_expression_backend():
    """Check HSEmotion availability."""
    try:
        import hsemotion_onnx  # noqa: F401

        print("  [+] Expressions")
        print("        Backend: HSEmotion-ONNX")
    except ImportError:
        print("  [-] Expressions")
        print("        Backend: NOT AVAILABLE (install hsemotion-onnx)")


def _print_paths(config):
    print(f"  Models: {config.analyzer.resolve_models_dir()}")


def _print_config(config):
    import yaml

    text = yaml.safe_dump(config.to_dict(), sort_keys=False, default_flow_style=False)
    for line in text.splitlines():
        print(f"  {line}")

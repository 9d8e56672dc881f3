"""qrbrand CLI: render a scannable QR code PNG from a URL, optionally with a centered logo."""

import argparse
import sys

from qrbrand.config import MAX_LOGO_SCALE, MIN_LOGO_SCALE, RenderParams
from qrbrand.errors import QRBrandError
from qrbrand.logging import audit, get_logger, setup_logging

log = get_logger("cli")


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="qrbrand",
        description="Generate a scannable QR code PNG from a URL, optionally with a centered logo.",
    )
    parser.add_argument("-u", "--url", required=True,
                        help="URL to encode (e.g. https://github.com/softwarewrighter/speed-kings)")
    parser.add_argument("-i", "--image", default=None, help="Optional center image/logo (png/jpg)")
    parser.add_argument("-o", "--out", default="qrcode.png", help="Output PNG path")
    parser.add_argument("--size", type=int, default=1024,
                        help="Size in pixels of the square QR portion. Higher is better for video.")
    parser.add_argument("--quiet", type=int, default=4,
                        help="Quiet zone size in modules (border). 4 is the usual minimum.")
    parser.add_argument("--logo-scale", type=float, default=0.20,
                        help=f"Logo size as a fraction of QR width ({MIN_LOGO_SCALE}..{MAX_LOGO_SCALE})")
    parser.add_argument("--logo-plate", action=argparse.BooleanOptionalAction, default=True,
                        help="Draw a white plate behind the logo for scan reliability")
    parser.add_argument("--logo-pad", type=float, default=0.18,
                        help="Extra padding around the logo plate (fraction of logo size)")

    text = parser.add_mutually_exclusive_group()
    text.add_argument("-s", "--show-url", action="store_true",
                      help="Render the URL as text below the QR code")
    text.add_argument("-a", "--alt-text", default=None,
                      help="Render alternate text below the QR code instead of the URL")

    parser.add_argument("--font", default=None, help="TrueType font for the text band (default: DejaVu Sans)")
    parser.add_argument("--verify", action="store_true", help="Decode the result and fail if it does not scan")

    # Global logging flags
    parser.add_argument("-V", "--verbose", action="store_true", help="Enable DEBUG-level logging")
    parser.add_argument("--log-file", default=None, help="Write JSON logs to file")
    return parser


def cmd_render(args) -> int:
    """Render, optionally verify, then write the PNG."""
    from qrbrand.logo import load_logo
    from qrbrand.pipeline import generate_branded_qr, save_png
    from qrbrand.text import load_font

    params = RenderParams(
        size=args.size,
        quiet_zone_modules=args.quiet,
        logo_scale=args.logo_scale,
        logo_plate=args.logo_plate,
        logo_pad=args.logo_pad,
        show_url=args.show_url,
        alt_text=args.alt_text,
    ).validate()

    # Decode inputs before any rendering so bad files fail fast
    logo = load_logo(args.image) if args.image else None
    font = load_font(args.font) if params.text_for(args.url) is not None else None

    image = generate_branded_qr(args.url, params, logo=logo, font=font)

    if args.verify:
        from qrbrand.verify import verify

        results = verify(image, expected_data=args.url.strip())
        for r in results:
            status = "PASS" if r.success else "FAIL"
            print(f"  [{r.decoder:12s}] {status} | {r.decode_time_ms:6.1f}ms | {r.decoded_data or r.error}")
        if not any(r.success for r in results):
            print("Verification failed: no decoder could read the code; nothing written.", file=sys.stderr)
            return 1

    output = save_png(image, args.out)
    print(f"Wrote {output} ({image.width}x{image.height})")
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    # Setup logging before anything runs
    level = "DEBUG" if args.verbose else "WARNING"
    setup_logging(level=level, log_file=args.log_file)
    audit("cli.start", logger=log, url=args.url, out=args.out, verbose=args.verbose)

    try:
        status = cmd_render(args)
    except (QRBrandError, ValueError) as e:
        audit("cli.error", logger=log, error_type=type(e).__name__, error=str(e))
        print(f"Error: {e}", file=sys.stderr)
        return 1

    audit("cli.done", logger=log, out=args.out, status=status)
    return status


if __name__ == "__main__":
    sys.exit(main())

#!/usr/bin/env python3
"""
Brand Studio CLI
================

CLI tool for scanning visual DNA, generating art and managing brand data.

Usage:
    # Scan visual DNA from a reference photo
    python studio_cli.py scan /path/to/cake.jpg

    # Generate art (saved to arte.png) and keep it in history
    python studio_cli.py generate "bolo de chocolate" --ratio 9:16 --ref produto.jpg --out arte.png --accept

    # Generate with a saved style and launch impact
    python studio_cli.py generate "lançamento de páscoa" --style "Rústico" --impact --watermark

    # Show history
    python studio_cli.py history

    # Export / import a backup
    python studio_cli.py export --dir backups/
    python studio_cli.py import backups/backup-jana-s-cakes.json

    # Clear history (or everything)
    python studio_cli.py clear
    python studio_cli.py clear --all

    # Check configuration
    python studio_cli.py health

Environment Variables:
    GOOGLE_API_KEY - Gemini API key
    SUPABASE_URL - Supabase project URL
    SUPABASE_SERVICE_KEY - Supabase service key
"""

import argparse
import asyncio
import logging
import sys
from datetime import datetime
from pathlib import Path

from dotenv import load_dotenv

from brandstudio.config import GeminiConfig, looks_like_api_key, mask_key
from brandstudio.errors import StudioError
from brandstudio.generation import data_url
from brandstudio.generation.gemini_client import GeminiService
from brandstudio.generation.pipeline import GenerationPipeline
from brandstudio.persistence.gateway import PersistenceGateway
from brandstudio.persistence.styles import find_style
from brandstudio.studio import BrandStudio

logger = logging.getLogger("studio_cli")


def build_studio(config: GeminiConfig | None = None) -> BrandStudio:
    config = config or GeminiConfig()
    return BrandStudio(
        pipeline=GenerationPipeline(GeminiService(config), config=config),
        gateway=PersistenceGateway(),
    )


def banner(title: str) -> None:
    print(f"\n{'='*60}")
    print(title)
    print(f"{'='*60}")


async def cmd_scan(args, studio: BrandStudio) -> int:
    """Scan visual DNA from an image file."""
    banner("VISUAL DNA SCAN")
    print(f"Image: {args.image}")

    if not Path(args.image).exists():
        print(f"ERROR: Image file not found: {args.image}")
        return 1

    image = await asyncio.to_thread(data_url.read_file, args.image)
    dna = await studio.pipeline.scan_dna(image)

    print(f"\nColors: {', '.join(dna.colors) or '-'}")
    print(f"Typography: {dna.typography}")
    print(f"Elements: {', '.join(dna.elements) or '-'}")
    print(f"Description: {dna.description}")
    return 0


async def cmd_generate(args, studio: BrandStudio) -> int:
    """Generate one art and optionally keep it in history."""
    banner("ART GENERATION")
    print(f"Prompt: {args.prompt}")
    print(f"Format: {args.ratio}")

    for path in [args.expert, *args.ref]:
        if path and not Path(path).exists():
            print(f"ERROR: Image file not found: {path}")
            return 1

    await studio.load()

    style_id = None
    if args.style:
        style = find_style(studio.brand, args.style)
        if style is None:
            print(f"ERROR: Style not found: {args.style}")
            return 1
        style_id = style.id
        print(f"Style: {style.name}")

    expert = await asyncio.to_thread(data_url.read_file, args.expert) if args.expert else None
    products = [await asyncio.to_thread(data_url.read_file, path) for path in args.ref]

    art = await studio.generate(
        prompt=args.prompt,
        aspect_ratio=args.ratio,
        style_id=style_id,
        expert_reference=expert,
        product_references=products,
        impact_mode=True if args.impact else None,
        watermark=args.watermark,
    )

    payload = data_url.decode(art.urls[0])
    out = Path(args.out)
    await asyncio.to_thread(out.write_bytes, payload.to_bytes())

    print(f"\nSaved: {out} ({out.stat().st_size} bytes)")
    print(f"Caption: {art.description or '-'}")

    if args.accept or args.reject:
        await studio.record_feedback(art, rejected=args.reject)
        print(f"History: recorded as {'rejected' if args.reject else 'accepted'} ({art.id})")

    return 0


async def cmd_history(args, studio: BrandStudio) -> int:
    """List generation history."""
    banner("ART HISTORY")
    state = await studio.load()
    if not state.online:
        print("ERROR: Store unavailable")
        return 1

    entries = state.history[: args.limit]
    print(f"\n{len(state.history)} entries (showing {len(entries)}):\n")
    for art in entries:
        when = datetime.fromtimestamp(art.timestamp / 1000).strftime("%Y-%m-%d %H:%M")
        mark = "x" if art.is_rejected else "+"
        style = f" [{art.style_name}]" if art.style_name else ""
        print(f"  {mark} {art.id}  {when}{style}  {art.prompt[:50]}")
    return 0


async def cmd_export(args, studio: BrandStudio) -> int:
    """Export a backup file."""
    banner("BACKUP EXPORT")
    directory = Path(args.dir)
    directory.mkdir(parents=True, exist_ok=True)

    path = await studio.backup.write_backup(directory)
    print(f"Written: {path}")
    return 0


async def cmd_import(args, studio: BrandStudio) -> int:
    """Import a backup file."""
    banner("BACKUP IMPORT")
    print(f"File: {args.file}")

    if not Path(args.file).exists():
        print(f"ERROR: File not found: {args.file}")
        return 1

    text = await asyncio.to_thread(Path(args.file).read_text, encoding="utf-8")
    state = await studio.import_backup(text)
    print(f"\nBrand: {state.brand.name}")
    print(f"Styles: {len(state.brand.saved_styles)}")
    print(f"History entries: {len(state.history)}")
    return 0


async def cmd_clear(args, studio: BrandStudio) -> int:
    """Clear history, or history and brand with --all."""
    banner("CLEAR DATA")
    if args.all:
        await studio.clear_all()
        print("History deleted, brand profile reset to default")
    else:
        await studio.clear_history()
        print("History deleted")
    return 0


async def cmd_health(args, studio: BrandStudio) -> int:
    """Show configuration and connectivity."""
    banner("HEALTH")
    config = studio.pipeline.config

    if config.api_key:
        status = "ok" if looks_like_api_key(config.api_key) else "unexpected format"
        print(f"Gemini key: {mask_key(config.api_key)} ({status})")
    else:
        print("Gemini key: not set")

    generation = await studio.pipeline.service.health_check()
    print(f"Gemini client: {generation['status']}")
    print(f"Models: image={config.image_model}, dna={config.dna_model}, caption={config.caption_model}")

    state = await studio.load()
    print(f"Store: {'online' if state.online else 'offline'}")
    return 0 if state.online and generation["status"] == "healthy" else 1


COMMANDS = {
    "scan": cmd_scan,
    "generate": cmd_generate,
    "history": cmd_history,
    "export": cmd_export,
    "import": cmd_import,
    "clear": cmd_clear,
    "health": cmd_health,
}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Brand Studio CLI",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog=__doc__,
    )
    parser.add_argument("-v", "--verbose", action="store_true", help="Debug logging")
    subparsers = parser.add_subparsers(dest="command", help="Command to run")

    # Scan command
    scan_parser = subparsers.add_parser("scan", help="Scan visual DNA from an image")
    scan_parser.add_argument("image", help="Path to reference image")

    # Generate command
    generate_parser = subparsers.add_parser("generate", help="Generate one art")
    generate_parser.add_argument("prompt", help="What to create")
    generate_parser.add_argument(
        "--ratio", default="1:1", choices=["1:1", "3:4", "4:3", "9:16", "16:9"], help="Output format"
    )
    generate_parser.add_argument("--expert", help="Path to expert photo")
    generate_parser.add_argument("--ref", action="append", default=[], help="Path to product photo (repeatable)")
    generate_parser.add_argument("--style", help="Saved style name")
    generate_parser.add_argument("--impact", action="store_true", help="Launch impact mode")
    generate_parser.add_argument("--watermark", action="store_true", help="Add brand watermark")
    generate_parser.add_argument("--out", default="arte.png", help="Output image path")
    feedback = generate_parser.add_mutually_exclusive_group()
    feedback.add_argument("--accept", action="store_true", help="Keep in history as accepted")
    feedback.add_argument("--reject", action="store_true", help="Keep in history as rejected")

    # History command
    history_parser = subparsers.add_parser("history", help="List generation history")
    history_parser.add_argument("--limit", type=int, default=20, help="Max entries")

    # Export command
    export_parser = subparsers.add_parser("export", help="Export a backup file")
    export_parser.add_argument("--dir", default=".", help="Output directory")

    # Import command
    import_parser = subparsers.add_parser("import", help="Import a backup file")
    import_parser.add_argument("file", help="Path to backup JSON")

    # Clear command
    clear_parser = subparsers.add_parser("clear", help="Clear history")
    clear_parser.add_argument("--all", action="store_true", help="Also reset the brand profile to the default")

    # Health command
    subparsers.add_parser("health", help="Check configuration and connectivity")

    return parser


async def run(args, studio: BrandStudio) -> int:
    try:
        return await COMMANDS[args.command](args, studio)
    except StudioError as e:
        logger.debug(f"{args.command} failed", exc_info=True)
        print(f"ERROR: {e.message}")
        return 1
    except ValueError as e:
        print(f"ERROR: {e}")
        return 1


def main(argv=None) -> int:
    load_dotenv()

    parser = build_parser()
    args = parser.parse_args(argv)

    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )

    if not args.command:
        parser.print_help()
        return 1

    return asyncio.run(run(args, build_studio()))


if __name__ == "__main__":
    sys.exit(main() or 0)

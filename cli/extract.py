import sys
from pathlib import Path
from typing import Any, Dict

from pdf2image.exceptions import PDFInfoNotInstalledError

from infra.config import load_ocr_config
from infra.config.schemas import OCRConfig
from infra.errors import LexscanError
from infra.recognition import DocumentAIClient, RecognitionClient
from pipeline.document_ocr import PipelineCoordinator


def config_overrides(args) -> Dict[str, Any]:
    """Nested override dict from CLI flags (unset flags are None and ignored)."""
    return {
        'dpi': args.dpi,
        'page_markers': True if args.markers else None,
        'enhancement': {
            'target_width': args.target_width,
            'sharpen_sigma': args.sharpen,
            'median': args.median,
            'ungamma': args.ungamma,
        },
        'concurrency': {
            'rasterization': args.rasterize_workers,
            'enhancement': args.enhance_workers,
            'recognition': args.recognize_workers,
        },
        'recognition': {
            'processor': args.processor,
            'credentials_file': args.credentials,
        },
    }


def build_coordinator(config: OCRConfig, client: RecognitionClient) -> PipelineCoordinator:
    return PipelineCoordinator(config, client)


def output_path_for(pdf_path: Path, output: str = None) -> Path:
    if output:
        return Path(output).expanduser()
    return pdf_path.with_suffix('.txt')


def cmd_extract(args):
    pdf_path = Path(args.pdf).expanduser()

    if not pdf_path.exists():
        print(f"❌ File not found: {pdf_path}")
        sys.exit(1)
    if pdf_path.suffix.lower() != '.pdf':
        print(f"❌ Not a PDF file: {pdf_path}")
        sys.exit(1)

    output_path = output_path_for(pdf_path, args.output)
    if output_path.exists() and not args.force:
        print(f"⏭️  Skipping {pdf_path.name} ({output_path.name} already exists, use --force to overwrite)")
        return

    try:
        config = load_ocr_config(
            Path(args.config) if args.config else None,
            overrides=config_overrides(args),
        )
        with DocumentAIClient.from_config(config.recognition) as client:
            coordinator = build_coordinator(config, client)
            result = coordinator.run(pdf_path.read_bytes())
    except PDFInfoNotInstalledError:
        print("❌ poppler is not installed (pdfinfo and pdftoppm must be on PATH)")
        sys.exit(1)
    except (LexscanError, ValueError, OSError) as e:
        print(f"❌ Error: {e}")
        sys.exit(1)

    output_path.parent.mkdir(parents=True, exist_ok=True)
    output_path.write_text(result.text, encoding='utf-8')

    print(f"✓ {pdf_path.name}: {result.pages} pages, {result.length} characters -> {output_path}")
    if not result.text:
        print(f"⚠️  No text extracted from {pdf_path.name}")
    elif result.empty_pages:
        print(f"⚠️  Pages without text: {', '.join(str(p) for p in result.empty_pages)}")


def setup_parser(subparsers):
    extract_parser = subparsers.add_parser(
        'extract',
        help='OCR a PDF into a .txt file beside it'
    )
    extract_parser.add_argument('pdf', help='PDF file to extract')
    extract_parser.add_argument('--output', '-o', help='Output text file (default: <pdf>.txt)')
    extract_parser.add_argument('--markers', action='store_true', help='Prefix each page with a page delimiter')
    extract_parser.add_argument('--force', action='store_true', help='Overwrite an existing output file')
    extract_parser.add_argument('--config', help='Config file (default: ~/.config/lexscan/config.yaml)')

    enhancement = extract_parser.add_argument_group('enhancement')
    enhancement.add_argument('--dpi', type=int, help='Rasterization DPI')
    enhancement.add_argument('--target-width', type=int, help='Page width in pixels after resize')
    enhancement.add_argument('--sharpen', help='Sharpen sigma (or legacy "AxB" form)')
    enhancement.add_argument('--median', type=int, help='Median filter size (0 disables)')
    enhancement.add_argument('--ungamma', type=float, help='Inverse gamma')

    workers = extract_parser.add_argument_group('concurrency')
    workers.add_argument('--rasterize-workers', type=int, help='Concurrent page rasterizations')
    workers.add_argument('--enhance-workers', type=int, help='Concurrent image enhancements')
    workers.add_argument('--recognize-workers', type=int, help='Concurrent recognition requests')

    service = extract_parser.add_argument_group('recognition service')
    service.add_argument('--processor', help='Document AI processor resource name')
    service.add_argument('--credentials', help='Service account key file')

    extract_parser.set_defaults(func=cmd_extract)

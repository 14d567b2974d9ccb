#!/usr/bin/env python3
"""
lexscan CLI - OCR scanned legal documents into text

Commands:
    lexscan extract <file.pdf>    OCR one PDF into <file>.txt
    lexscan config show           Show resolved configuration
"""

import sys
from pathlib import Path

# Add project root to path
sys.path.insert(0, str(Path(__file__).parent))

from cli import main


if __name__ == '__main__':
    main()

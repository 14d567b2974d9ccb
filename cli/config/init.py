"""
lexscan config init command - Write a starter config file.
"""

import os
import sys
from pathlib import Path

from infra.config import ENV_VARS, OCRConfig, OCRConfigManager, env_values
from cli.config.show import _mask_path


def cmd_config_init(args):
    """Write defaults (optionally seeded from the environment) to the config file."""
    manager = OCRConfigManager(Path(args.config) if args.config else None)

    if manager.exists() and not args.force:
        print(f"✗ Config already exists at: {manager.config_path}")
        print("  Use --force to overwrite")
        return

    if args.from_env:
        print("Reading settings from environment variables...")
        values = env_values(os.environ)
        found = [var for var in ENV_VARS if os.environ.get(var)]
        try:
            config = OCRConfig.model_validate(values)
        except ValueError as e:
            print(f"❌ Invalid environment setting: {e}")
            sys.exit(1)
        if found:
            print(f"  Using {len(found)} variables: {', '.join(found)}")
        else:
            print("  No settings found in environment")
    else:
        config = OCRConfig()

    manager.save(config)
    print(f"✓ Created config at: {manager.config_path}")

    print("\nConfiguration summary:")
    print(f"  DPI: {config.dpi}")
    print(f"  Target width: {config.enhancement.target_width}")
    limits = config.concurrency
    print(f"  Workers: rasterize {limits.rasterization}, enhance {limits.enhancement}, recognize {limits.recognition}")

    recognition = config.recognition
    print("\nRecognition:")
    if recognition.processor:
        print(f"  ✓ processor: {recognition.processor}")
    else:
        print("  ○ processor: not set (DOC_AI_PROCESSOR or recognition.processor)")
    credentials = _mask_path(str(recognition.credentials_file)) if recognition.credentials_file else None
    print(f"  credentials: {credentials or 'application default credentials'}")

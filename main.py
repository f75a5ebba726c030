#!/usr/bin/env python3
"""
SDK codegen - regenerate SDK libraries and fix build errors with an AI assistant

Usage:
    python main.py generate sdk/storage/Azure.Storage.Blobs --max-retries 5
    python main.py migrate sdk/storage/Azure.Storage.Blobs --dry-run
"""

from dotenv import load_dotenv

load_dotenv()

from sdk_codegen_cli.presentation.cli.app import cli

if __name__ == '__main__':
    cli()

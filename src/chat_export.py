#!/usr/bin/env python3
"""
AI Chat Export CLI
Export every conversation of an AI chat site to Markdown and/or JSON files,
using the browser session you are already signed in with.
"""

import argparse
import sys
import time
from pathlib import Path
from typing import Callable, Dict, Any, List, Optional, Set, Tuple
import logging

from config_manager import ConfigManager
from errors import ChatExportError, NotSignedInError
from models import Conversation, ConversationReference
from browser.page_evaluator import create_bridge
from browser.navigator import Navigator
from providers.base_provider import BaseProvider
from providers.provider_registry import ProviderRegistry
from output_formatter import ChatExportFormatter, FORMAT_EXTENSIONS
from extractors.text_normalizer import TextNormalizer

VERSION = "0.1.0"

FORMAT_CHOICES = ["markdown", "json", "both"]

logger = logging.getLogger(__name__)

def setup_logging(verbose: bool = False):
    """Setup logging configuration"""
    level = logging.DEBUG if verbose else logging.INFO
    logging.basicConfig(
        level=level,
        format='%(asctime)s - %(levelname)s - %(message)s',
        datefmt='%Y-%m-%d %H:%M:%S'
    )

def output_formats(choice: str) -> List[str]:
    """Expand the --format choice into concrete formats"""
    return ['markdown', 'json'] if choice == 'both' else [choice]

def unique_filename(base: str, used: Set[str]) -> str:
    """Suffix a file name stem so it is not reused within one run"""
    candidate = base
    counter = 2
    while candidate.lower() in used:
        candidate = f"{base} ({counter})"
        counter += 1
    used.add(candidate.lower())
    return candidate

def build_parser(providers: List[str]) -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="ai-chat-export",
        description="Export AI chat conversations to Markdown/JSON using your signed-in browser",
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Prerequisites (AppleScript backend):
  1. macOS with Google Chrome open and signed in to the provider
  2. Chrome > View > Developer > Allow JavaScript from Apple Events

Prerequisites (CDP backend):
  Chrome started with --remote-debugging-port=9222 and signed in

Examples:
  ai-chat-export
  ai-chat-export --provider gemini --format json
  ai-chat-export --format both --output ~/my-exports
  ai-chat-export --backend cdp --cdp-port 9222 --delay 5000 --verbose
        """
    )

    parser.add_argument(
        "--provider", "-p",
        default="gemini",
        help=f"AI provider: {', '.join(providers)} (default: gemini)"
    )

    parser.add_argument(
        "--output", "-o",
        help="Output directory (default: from config, ./ai-chats)"
    )

    parser.add_argument(
        "--format", "-f",
        choices=FORMAT_CHOICES,
        help="Output format (default: from config, markdown)"
    )

    parser.add_argument(
        "--delay", "-d",
        type=int,
        help="Delay between chats in ms (default: from config, 3000)"
    )

    parser.add_argument(
        "--backend", "-b",
        choices=["applescript", "cdp"],
        help="How to drive the browser (default: from config, applescript)"
    )

    parser.add_argument(
        "--cdp-host",
        help="Chrome DevTools host for the cdp backend"
    )

    parser.add_argument(
        "--cdp-port",
        type=int,
        help="Chrome DevTools port for the cdp backend"
    )

    parser.add_argument(
        "--config", "-c",
        help="Configuration file path (default: ~/.config/ai_chat_export/config.yaml)"
    )

    parser.add_argument(
        "--verbose", "-v",
        action="store_true",
        help="Enable verbose output"
    )

    parser.add_argument(
        "--version",
        action="version",
        version=f"AI Chat Export v{VERSION}"
    )

    return parser

def apply_overrides(config: Dict[str, Any], args: argparse.Namespace) -> Dict[str, Any]:
    """Fold command line options into the loaded configuration"""
    bridge = config.setdefault('bridge', {})
    if args.backend:
        bridge['backend'] = args.backend
    if args.cdp_host:
        bridge['cdp_host'] = args.cdp_host
    if args.cdp_port:
        bridge['cdp_port'] = args.cdp_port
    if args.output:
        config['default_output'] = args.output
    if args.format:
        config['default_format'] = args.format
    if args.delay is not None:
        config['delay_ms'] = args.delay
    return config

def ensure_ready(provider: BaseProvider, navigator: Navigator) -> None:
    """
    Open the provider's site if needed and check the session

    Raises:
        NotSignedInError: If the session is not signed in
    """
    current_url = navigator.current_url()
    logger.debug(f"Current URL: {current_url}")

    if not provider.matches_url(current_url):
        print(f"Navigating to {provider.display_name}...")
        navigator.navigate_to(provider.entry_url)

    if not provider.is_signed_in():
        raise NotSignedInError(provider.display_name)

def export_chats(provider: BaseProvider, navigator: Navigator, formatter: ChatExportFormatter,
                 chats: List[ConversationReference], output_dir: Path, formats: List[str],
                 delay: float, verbose: bool = False, max_filename_length: int = 200,
                 sleep: Callable[[float], None] = time.sleep) -> Tuple[int, int]:
    """
    Navigate to each chat, extract it and write the requested files

    Returns:
        (exported, failed) counts
    """
    exported = 0
    failed = 0
    used_names: Set[str] = set()

    for i, chat in enumerate(chats, 1):
        title = chat.label or f"Chat {i}"
        print(f"[{i}/{len(chats)}] {title}")
        logger.debug(f"  URL: {chat.href}")

        try:
            navigator.navigate_to(chat.href)
            messages = provider.extract_messages(verbose=verbose)

            conversation = Conversation(
                messages=messages,
                provider=provider.name,
                title=title,
                url=chat.href,
            )
            if not conversation.messages:
                print("  ⚠ No messages extracted, skipping")
                failed += 1
            else:
                logger.debug(
                    f"  {conversation.get_message_count()} messages extracted "
                    f"({len(conversation.get_user_messages())} user, "
                    f"{len(conversation.get_assistant_messages())} assistant)"
                )
                stem = TextNormalizer.sanitize_filename(title, max_filename_length) or f"chat-{i}"
                stem = unique_filename(stem, used_names)

                rendered = {fmt: formatter.format(conversation, fmt) for fmt in formats}
                for fmt, content in rendered.items():
                    path = output_dir / f"{stem}.{FORMAT_EXTENSIONS[fmt]}"
                    path.write_text(content, encoding='utf-8')
                    logger.debug(f"  Saved {path.name}")

                exported += 1

        except (ChatExportError, OSError) as e:
            print(f"  ✗ {e}")
            failed += 1

        if i < len(chats):
            sleep(delay)

    return exported, failed

def main(argv: Optional[List[str]] = None) -> int:
    registry = ProviderRegistry()
    parser = build_parser(registry.list_providers())
    args = parser.parse_args(argv)

    # Setup logging
    setup_logging(args.verbose)

    bridge = None
    try:
        # Load configuration
        config_manager = ConfigManager(args.config)
        config = apply_overrides(config_manager.load_config(), args)
        registry = ProviderRegistry(config)

        provider_class = registry.get_provider_class(args.provider)

        backend = config['bridge'].get('backend', 'applescript')
        if backend == 'applescript' and sys.platform != 'darwin':
            logger.error("The applescript backend requires macOS. Use --backend cdp on other systems.")
            return 1

        bridge = create_bridge(config, provider_class.entry_url)
        provider = registry.get_provider(args.provider, bridge)
        navigator = Navigator(bridge, config)

        output_dir = Path(config.get('default_output', './ai-chats')).expanduser().resolve()
        output_dir.mkdir(parents=True, exist_ok=True)
        fmt = config.get('default_format', 'markdown')
        if fmt not in FORMAT_CHOICES:
            logger.error(f"Invalid format \"{fmt}\". Use: {', '.join(FORMAT_CHOICES)}")
            return 1
        delay_ms = int(config.get('delay_ms', 3000))

        print(f"ai-chat-export ({provider.display_name})")
        print("==================\n")
        print(f"Provider: {provider.display_name}")
        print(f"Output:   {output_dir}")
        print(f"Format:   {fmt}")
        print(f"Delay:    {delay_ms}ms\n")

        ensure_ready(provider, navigator)
        print(f"Signed in to {provider.display_name}.\n")

        print("Collecting chat links...")
        chats = provider.discover_chats(verbose=args.verbose)
        print(f"Found {len(chats)} conversations to export.\n")

        if not chats:
            print("No conversations found. Exiting.")
            return 0

        formatter = ChatExportFormatter(config, assistant_label=provider.short_name)
        exported, failed = export_chats(
            provider, navigator, formatter, chats, output_dir,
            output_formats(fmt), delay_ms / 1000.0,
            verbose=args.verbose,
            max_filename_length=config.get('output', {}).get('max_filename_length', 200),
        )

        print("\n==================")
        print("Export complete!")
        print(f"  Exported: {exported}")
        print(f"  Failed:   {failed}")
        print(f"  Output:   {output_dir}")
        return 0

    except ChatExportError as e:
        logger.error(str(e))
        return 1
    except KeyboardInterrupt:
        logger.info("Operation cancelled by user")
        return 1
    except Exception as e:
        logger.error(f"Unexpected error: {e}")
        if args.verbose:
            import traceback
            traceback.print_exc()
        return 1
    finally:
        if bridge is not None:
            bridge.close()

if __name__ == "__main__":
    sys.exit(main())

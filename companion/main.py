import sys
from pathlib import Path

import shtab

from .agent import Agent, AgentConfig, AgentError
from .args import get_parser
from .chat import ChatConfig, ChatSession
from .config import (
    ConfigError,
    ConfigManager,
    SettingsStore,
    load_api_settings,
    save_api_settings,
)
from .conversations import ChatStorage, ConversationError
from .indexer import InvalidPath
from .io import InputOutput
from .policy import FAILED, ExecutionMode
from .providers import ProviderError, create_chat_client

AGENT_MODES = {
    "plan": ExecutionMode.PLAN,
    "interactive": ExecutionMode.INTERACTIVE,
    "auto": ExecutionMode.AUTO,
}


def _settings_store(args, config) -> SettingsStore:
    try:
        return SettingsStore(args.settings or config.settings_file)
    except ValueError as e:
        raise ConfigError(str(e)) from e


def _chat_client(args, config, io):
    store = _settings_store(args, config)
    api_key, provider = load_api_settings(store, config)
    io.debug(f"Using provider {provider} ({config.get_provider(provider).model})")

    def on_retry(error, delay):
        io.tool_warning(f"{error} - retrying in {delay:g}s")

    return create_chat_client(
        config.get_provider(provider),
        api_key,
        retries=config.retry.retries,
        backoff=config.retry.backoff,
        on_retry=on_retry,
    )


def run_configure(args, config, io) -> int:
    store = _settings_store(args, config)

    provider = args.provider
    if not provider:
        current = store.get("provider") or config.provider
        answer = io.prompt_ask(f"Provider ({', '.join(config.providers)}) [{current}]:")
        provider = (answer or "").strip() or current
    if provider not in config.providers:
        raise ConfigError(f"Unknown provider: {provider}")

    api_key = args.api_key
    if api_key is None:
        api_key = io.prompt_ask("API key:")
    api_key = (api_key or "").strip()
    if not api_key:
        raise ConfigError("API key is empty.")

    save_api_settings(store, api_key, provider)
    io.tool_output(f"Settings saved to {store.path}")
    return 0


def run_chats(args, io) -> int:
    storage = ChatStorage()

    if args.delete:
        storage.delete(args.delete)
        io.tool_output(f"Deleted conversation {args.delete}")
        return 0

    if args.all:
        chats = storage.list()
    else:
        chats = storage.list_for_project(str(Path(args.cwd).resolve()))

    if not chats:
        io.tool_output("No saved conversations.")
        return 0

    for chat in chats:
        io.tool_output(f"{chat.id}  {chat.title}  ({chat.time_ago()})")
        if args.all:
            io.tool_output(f"    {chat.project_path}")
    return 0


def run_agent(args, config, io) -> int:
    index = config.index
    agent_config = AgentConfig(
        cwd=Path(args.cwd),
        instruction=" ".join(args.instruction),
        mode=AGENT_MODES[args.command],
        include_extensions=args.include or index.include_extensions,
        exclude_dirs=list(index.exclude_dirs) + args.exclude,
        max_files=args.max_files or index.max_files,
        dry_run=getattr(args, "dry_run", False),
        context_tokens=index.context_tokens,
        encoding=config.encoding,
    )
    client = _chat_client(args, config, io)

    results = Agent(agent_config, client, io).run()
    if results and any(r.status == FAILED for r in results):
        return 1
    return 0


def run_chat(args, config, io) -> int:
    index = config.index
    chat_config = ChatConfig(
        cwd=Path(args.cwd).resolve(),
        include_extensions=args.include or index.include_extensions,
        exclude_dirs=list(index.exclude_dirs) + args.exclude,
        max_files=args.max_files or index.max_files,
        context_tokens=index.chat_context_tokens,
        encoding=config.encoding,
    )
    client = _chat_client(args, config, io)
    storage = ChatStorage()

    session = ChatSession(chat_config, client, io, storage=storage)
    if args.resume:
        session.resume(storage.load(args.resume))
    session.run()
    return 0


def main(argv=None, input_func=input, console=None) -> int:
    parser = get_parser()
    args = parser.parse_args(argv)

    if args.shell_completions:
        print(shtab.complete(parser, shell=args.shell_completions))
        return 0

    io = InputOutput(console=console, input_func=input_func)

    if args.init_config:
        try:
            path = ConfigManager().create_sample_config(args.config)
        except (ConfigError, OSError) as e:
            io.tool_error(f"Error: {e}")
            return 1
        io.tool_output(f"Created sample configuration file: {path}")
        return 0

    try:
        start_path = Path(getattr(args, "cwd", ".")).resolve()
        config = ConfigManager().load_config(args.config, start_path=start_path)
    except ConfigError as e:
        io.tool_error(f"Error: {e}")
        io.tool_output("Use 'companion-chat --init-config' to create a sample configuration file.")
        return 1

    config.output.pretty = config.output.pretty and args.pretty
    config.output.verbose = config.output.verbose or args.verbose
    io = InputOutput(config.output, console=console, input_func=input_func, yes_always=args.yes_always)

    if not args.command:
        parser.print_help()
        return 1

    try:
        if args.command == "configure":
            return run_configure(args, config, io)
        if args.command == "chats":
            return run_chats(args, io)
        if args.command == "chat":
            return run_chat(args, config, io)
        return run_agent(args, config, io)
    except (ConfigError, InvalidPath, AgentError, ProviderError, ConversationError) as e:
        io.tool_error(f"Error: {e}")
        return 1
    except KeyboardInterrupt:
        io.tool_warning("Interrupted.")
        return 130


if __name__ == "__main__":
    sys.exit(main())

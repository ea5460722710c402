"""Entry point: serve | oneshot."""

import sys


def _pop_option(args: list[str], name: str) -> str | None:
    if name not in args:
        return None
    idx = args.index(name)
    if idx + 1 >= len(args):
        print(f"Missing value for {name}")
        sys.exit(1)
    value = args[idx + 1]
    del args[idx : idx + 2]
    return value


def main():
    mode = "serve"
    if len(sys.argv) > 1:
        mode = sys.argv[1].lower()

    if mode == "serve":
        import uvicorn

        from webresearch.core.config import config
        from webresearch.interfaces.api import create_app

        uvicorn.run(create_app(), host=config.api_host, port=config.api_port)

    elif mode == "oneshot":
        from webresearch.interfaces.oneshot import main as run_oneshot_main

        args = list(sys.argv[2:])
        sources_arg = _pop_option(args, "--sources")
        description = _pop_option(args, "--description")
        sources = [s.strip() for s in sources_arg.split(",") if s.strip()] if sources_arg else None
        if args:
            topic = " ".join(args).strip()
        else:
            topic = sys.stdin.read().strip()
        sys.exit(run_oneshot_main(topic=topic, sources=sources, description=description))

    else:
        print(f"Unknown mode: {mode}")
        print("Usage: python -m webresearch.main [serve|oneshot <topic> [--sources web,paper] [--description ...]]")
        sys.exit(1)


if __name__ == "__main__":
    main()

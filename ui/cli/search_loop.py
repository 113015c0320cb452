# ui/cli/search_loop.py
"""
Interactive municipality search prompt.
Any input that is not a command is run as a query.
"""
import time
from typing import Optional
from prompt_toolkit import PromptSession
from prompt_toolkit.history import InMemoryHistory
from core.search.query_engine import QueryEngine
from ui.cli.console_utils import clear_screen, print_header, print_rule, format_elapsed_time
from ui.cli.result_table import render_outcome

EXIT_COMMANDS = {"sair", "exit"}
CLEAR_COMMANDS = {"limpar", "clear"}
CACHE_COMMANDS = {"cache"}
HELP_COMMANDS = {"ajuda", "help"}

def print_banner(engine: QueryEngine):
    print_header("🔎 Municipality Search", subtitle=f"Index directory: {engine.cache.index_dir}")
    print("  You can search by:")
    print("    UF (eg. SP, RJ, MG)")
    print("    IBGE or TOM code (eg. 3550308, 71072)")
    print("    Part of a municipality name (eg. São, Santos, Campinas)")
    print("\n  Commands: sair/exit, limpar/clear, cache, ajuda/help")
    print_rule()
    print()

def print_help(engine: QueryEngine):
    print("\n  SEARCH TYPES:")
    print("    UF (2 letters): SP, RJ, MG, ...")
    print("    Code: 3550308 (IBGE), 71072 (TOM) - at least 4 digits")
    print("    Name: São Paulo, Santos, part of the name")
    print("\n  COMMANDS:")
    print("    sair/exit    - quit")
    print("    limpar/clear - clear the screen")
    print("    cache        - show UFs loaded in memory")
    print("    ajuda/help   - this help")
    print("\n  TIPS:")
    print("    Searches ignore upper/lower case")
    print(f"    UF and name results are limited to {engine.display_limit} rows")
    print("    UF files are kept in memory after their first use\n")

def print_cache_status(engine: QueryEngine):
    snapshot = engine.cache.snapshot()
    print("\n  IN-MEMORY CACHE STATUS:")
    print(f"  UFs loaded: {len(snapshot)}")
    if not snapshot:
        print("  No UF loaded yet.\n")
        return
    print(f"  Municipalities in cache: {sum(snapshot.values()):,}")
    for code, count in snapshot.items():
        description = engine.partition_header(code) or f"UF {code}"
        print(f"    • {code}: {count:,} municipalities ({description})")
    print()

def run_query(engine: QueryEngine, query: str):
    """Run one query and print its results with the elapsed time."""
    print(f"  Searching for: '{query}'...\n")
    start = time.perf_counter()
    try:
        outcome = engine.search(query)
        for line in render_outcome(outcome):
            print(line)
    except (OSError, ValueError) as e:
        print(f"  ❗ Error during search: {e}")
    print(f"  Search took {format_elapsed_time(time.perf_counter() - start)}\n")

def handle_input(engine: QueryEngine, text: Optional[str]) -> bool:
    """Process one line of input. Returns False when the loop should stop."""
    text = (text or "").strip()
    if not text:
        print("  Please type something to search.\n")
        return True

    command = text.lower()
    if command in EXIT_COMMANDS:
        print("  Closing the search system. Goodbye!")
        return False
    if command in CLEAR_COMMANDS:
        clear_screen()
        print_banner(engine)
    elif command in CACHE_COMMANDS:
        print_cache_status(engine)
    elif command in HELP_COMMANDS:
        print_help(engine)
    else:
        run_query(engine, text)
    return True

def search_loop(engine: QueryEngine, session: Optional[PromptSession] = None):
    """Read queries until exit, Ctrl+C or Ctrl+D."""
    session = session or PromptSession(history=InMemoryHistory())
    print_banner(engine)
    while True:
        try:
            text = session.prompt("Search: ")
        except (EOFError, KeyboardInterrupt):
            print("\n  Goodbye!")
            return
        if not handle_input(engine, text):
            return

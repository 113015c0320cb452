import os
from typing import Optional
from config import FRAME_WIDTH

RULE_CHAR = "═"

def clear_screen():
    os.system('cls' if os.name == 'nt' else 'clear')

def print_rule(width: int = FRAME_WIDTH):
    print(RULE_CHAR * width)

def print_header(title: str, subtitle: Optional[str] = None, width: int = FRAME_WIDTH):
    """Framed screen title, with an optional second line."""
    print()
    print_rule(width)
    print(f"  {title}")
    if subtitle:
        print(f"  {subtitle}")
    print_rule(width)

def format_elapsed_time(seconds: float) -> str:
    """Milliseconds under a second, then seconds, minutes and hours."""
    if seconds < 1:
        return f"{seconds * 1000:.0f}ms"
    if seconds < 60:
        return f"{seconds:.1f}s"
    minutes, secs = divmod(int(round(seconds)), 60)
    if minutes < 60:
        return f"{minutes}m {secs}s"
    hours, minutes = divmod(minutes, 60)
    return f"{hours}h {minutes}m"

def format_size(size_bytes: int) -> str:
    return f"{size_bytes:,} bytes ({size_bytes / 1024:.1f} KB)"

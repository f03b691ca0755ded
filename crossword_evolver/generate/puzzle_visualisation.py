"""
Simple text and JSON views of generated crosswords.

Renderers proper (typeset export, the web front-end) live elsewhere; these
helpers are for terminals, logs and quick inspection.
"""

import json

from ..core.base_puzzle import CrosswordPuzzle


def format_grid(grid, show_solution: bool = False) -> str:
    """
    Render a puzzle grid as text.

    Args:
        grid: Blank numbered grid, or a solution grid when show_solution is set
        show_solution: Print letters instead of numbers and blanks
    """
    lines = []
    for row in grid:
        formatted_row = []
        for cell in row:
            if cell == "#":
                formatted_row.append("███")
            elif show_solution:
                formatted_row.append(f" {cell} ")
            elif str(cell).isdigit():
                formatted_row.append(f"{cell:>2} ")
            else:
                formatted_row.append(" _ ")
        lines.append("".join(formatted_row))
    return "\n".join(lines)


def format_puzzle(puzzle: CrosswordPuzzle, show_solution: bool = False) -> str:
    """Grid, clue lists and score summary of a single puzzle."""
    rows, cols = puzzle.get_size()
    lines = [
        "=" * 60,
        f"PUZZLE: {puzzle.puzzle_id} ({rows}x{cols})",
    ]
    total = puzzle.score_breakdown.get("total")
    if total is not None:
        lines.append(f"Score: {total:.3f} | Words: {len(puzzle.clues)}")
    lines.append("=" * 60)

    lines.append("")
    lines.append("GRID:")
    if show_solution:
        lines.append(format_grid(puzzle.solution_grid, show_solution=True))
    else:
        lines.append(format_grid(puzzle.grid))

    for direction in ("across", "down"):
        clues = puzzle.get_clues(direction)
        if not clues:
            continue
        lines.append("")
        lines.append(f"{direction.upper()}:")
        for clue in clues:
            text = clue.clue_text or "(no clue)"
            lines.append(f"  {clue.number}: {text} ({clue.length}) [{clue.answer}]")

    if puzzle.unplaced_words:
        lines.append("")
        lines.append(f"UNPLACED: {', '.join(puzzle.unplaced_words)}")

    return "\n".join(lines)


def display_puzzle(puzzle: CrosswordPuzzle, show_solution: bool = False):
    """Print a puzzle to the terminal."""
    print(format_puzzle(puzzle, show_solution))


def web_format(puzzle: CrosswordPuzzle) -> str:
    """JSON document for web front-ends."""
    return json.dumps(puzzle.to_dict(), indent=2, ensure_ascii=False)

"""FastAPI backend for Xiangqi games."""

import os
import asyncio
import logging
from concurrent.futures import ThreadPoolExecutor
from contextlib import asynccontextmanager
from fastapi import FastAPI, HTTPException
from pydantic import BaseModel
from typing import Optional, List, Dict, Any
from time import time

from xiangqi.board import Board, Color, Move, Position
from xiangqi.engine import Difficulty
from xiangqi.game import Game
from xiangqi.rules import legal_moves


logger = logging.getLogger(__name__)

# Configuration (environment overrides)
DEFAULT_DIFFICULTY = Difficulty.parse(os.environ.get("XIANGQI_DEFAULT_DIFFICULTY", "medium"))
MAX_UNDO = int(os.environ.get("XIANGQI_MAX_UNDO", "50"))
MAX_IDLE_SECONDS = float(os.environ.get("XIANGQI_MAX_IDLE_SECONDS", "3600"))
AI_WORKERS = int(os.environ.get("XIANGQI_AI_WORKERS", "4"))

# Thread pool for CPU-intensive AI searches
_executor: Optional[ThreadPoolExecutor] = None


def get_executor() -> ThreadPoolExecutor:
    global _executor
    if _executor is None:
        _executor = ThreadPoolExecutor(max_workers=AI_WORKERS)
    return _executor


@asynccontextmanager
async def lifespan(app: FastAPI):
    """Application lifespan manager."""
    yield
    global _executor
    if _executor is not None:
        _executor.shutdown(wait=True)
        _executor = None


app = FastAPI(title="Xiangqi AI Engine", lifespan=lifespan)


class GameSession:
    """Game plus the locking state the API needs around it."""

    def __init__(self, game: Game):
        self.game = game
        self.lock = asyncio.Lock()
        self.last_access = time()
        self.is_processing = False  # AI search in progress


games: Dict[str, GameSession] = {}
games_lock = asyncio.Lock()


async def get_session(game_id: str) -> GameSession:
    """Look up a game or fail with 404."""
    async with games_lock:
        if game_id not in games:
            raise HTTPException(status_code=404, detail="Game not found")
        session = games[game_id]
        session.last_access = time()
        return session


async def cleanup_old_games():
    """Drop games that have been idle for too long."""
    current_time = time()
    async with games_lock:
        to_remove = [
            game_id
            for game_id, session in games.items()
            if current_time - session.last_access > MAX_IDLE_SECONDS
        ]
        for game_id in to_remove:
            del games[game_id]
    if to_remove:
        logger.info("Removed %d idle games", len(to_remove))


class NewGameRequest(BaseModel):
    """Request model for creating a new game."""

    game_id: str
    difficulty: Optional[str] = None  # "easy", "medium" or "hard"
    ai_color: Optional[str] = "green"  # None for two human players
    custom_setup: Optional[Dict[str, str]] = None  # e.g. {"e10": "rG", "e1": "gG"}
    first_turn: str = "red"


class MoveRequest(BaseModel):
    """Request model for making a move."""

    game_id: str
    from_square: str  # e.g. "a10"
    to_square: str  # e.g. "a8"


class BoardResponse(BaseModel):
    """Response model for board state."""

    board: List[List[Optional[str]]]  # rank 1 (Green back rank) first
    turn: str
    game_over: bool
    winner: Optional[str]
    end_reason: Optional[str] = None
    in_check: bool
    legal_moves: List[Dict[str, str]]
    move_history: List[Dict[str, Any]]
    can_undo: bool = False
    difficulty: str
    ai_color: Optional[str] = None


def parse_color(value: Optional[str]) -> Optional[Color]:
    if value is None:
        return None
    try:
        return Color(value.strip().lower())
    except ValueError:
        raise HTTPException(status_code=400, detail=f"Invalid color: {value}")


def move_to_dict(move: Move) -> Dict[str, str]:
    return {"from": move.from_pos.to_square(), "to": move.to_pos.to_square()}


def _history_entries(game: Game) -> List[Dict[str, Any]]:
    entries = []
    for number, move in enumerate(game.moves, start=1):
        before = move.board_before
        mover = before.piece_at(move.from_pos) if before is not None else None
        captured = before.piece_at(move.to_pos) if before is not None else None
        entries.append(
            {
                "move_number": number,
                "from": move.from_pos.to_square(),
                "to": move.to_pos.to_square(),
                "piece": mover.code if mover else None,
                "captured": captured is not None,
            }
        )
    return entries


def _board_response(game: Game) -> BoardResponse:
    moves = [] if game.is_over else legal_moves(game.board, game.turn)
    return BoardResponse(
        board=game.board.grid(),
        turn=game.turn.value,
        game_over=game.is_over,
        winner=game.winner.value if game.winner else None,
        end_reason=game.end_reason,
        in_check=game.in_check(),
        legal_moves=[move_to_dict(m) for m in moves],
        move_history=_history_entries(game),
        can_undo=game.can_undo,
        difficulty=game.difficulty.value,
        ai_color=game.ai_color.value if game.ai_color else None,
    )


def _outcome(game: Game) -> Dict[str, Any]:
    if not game.is_over:
        return {"game_over": False}
    return {"game_over": True, "winner": game.winner.value, "reason": game.end_reason}


@app.post("/api/new-game")
async def new_game(request: NewGameRequest):
    """Create a new game."""
    try:
        difficulty = (
            Difficulty.parse(request.difficulty) if request.difficulty else DEFAULT_DIFFICULTY
        )
        board = Board.from_setup(request.custom_setup) if request.custom_setup else Board.initial()
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    game = Game(
        board=board,
        turn=parse_color(request.first_turn),
        ai_color=parse_color(request.ai_color),
        difficulty=difficulty,
        max_history=MAX_UNDO,
    )

    async with games_lock:
        games[request.game_id] = GameSession(game)

    await cleanup_old_games()

    logger.info("New game %s (%s)", request.game_id, difficulty.value)
    return {"status": "ok", "game_id": request.game_id, "difficulty": difficulty.value}


@app.get("/api/board/{game_id}", response_model=BoardResponse)
async def get_board(game_id: str):
    """Get current board state."""
    session = await get_session(game_id)
    async with session.lock:
        try:
            return _board_response(session.game)
        except Exception as e:
            logger.error("Error building board for %s", game_id, exc_info=True)
            raise HTTPException(status_code=500, detail=f"Internal server error: {e}")


@app.get("/api/legal-moves/{game_id}/{square}")
async def get_legal_targets(game_id: str, square: str):
    """Legal destinations for the piece on `square`."""
    session = await get_session(game_id)
    try:
        position = Position.from_square(square)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=str(e))

    async with session.lock:
        targets = session.game.legal_targets(position)
    return {"square": square, "targets": [t.to_square() for t in targets]}


@app.post("/api/move")
async def make_move(request: MoveRequest):
    """Make a move."""
    session = await get_session(request.game_id)

    try:
        from_pos = Position.from_square(request.from_square)
        to_pos = Position.from_square(request.to_square)
    except ValueError as e:
        raise HTTPException(status_code=400, detail=f"Invalid square notation: {e}")

    async with session.lock:
        game = session.game
        if game.is_over:
            raise HTTPException(status_code=409, detail="Game is over")
        if session.is_processing:
            raise HTTPException(status_code=409, detail="AI is processing a move")
        if game.engine_to_move:
            raise HTTPException(status_code=409, detail="It is the AI's turn")
        if not game.make_move(from_pos, to_pos):
            raise HTTPException(status_code=400, detail="Illegal move")

        result = {"status": "ok", "move": f"{from_pos}{to_pos}"}
        result.update(_outcome(game))
        result["in_check"] = game.in_check()
    return result


@app.post("/api/ai-move/{game_id}")
async def ai_move(game_id: str):
    """Let the engine move for its color (either side if the game has no ai_color)."""
    session = await get_session(game_id)

    async with session.lock:
        if session.is_processing:
            raise HTTPException(
                status_code=409, detail="AI is already processing a move. Please wait."
            )
        if session.game.is_over:
            raise HTTPException(status_code=409, detail="Game is over")
        if session.game.human_to_move:
            raise HTTPException(status_code=409, detail="It is the player's turn")
        session.is_processing = True
        board = session.game.board
        turn = session.game.turn
        engine = session.game.engine

    try:
        # Search outside the lock so the board can still be read
        loop = asyncio.get_running_loop()
        best_move = await loop.run_in_executor(get_executor(), engine.search, board, turn)

        async with session.lock:
            game = session.game
            if game.board is not board:
                raise HTTPException(status_code=409, detail="Board changed during search")

            if best_move is None:
                game.claim_no_moves()
                result = {"status": "ok", "move": None}
                result.update(_outcome(game))
                return result

            if not game.play(best_move):
                logger.error("Engine produced illegal move %s", best_move)
                raise HTTPException(status_code=500, detail="AI generated illegal move")

            result = {
                "status": "ok",
                "move": move_to_dict(best_move),
                "nodes_searched": engine.nodes_searched,
            }
            result.update(_outcome(game))
            result["in_check"] = game.in_check()
        return result
    finally:
        async with session.lock:
            session.is_processing = False


@app.post("/api/undo/{game_id}")
async def undo_move(game_id: str):
    """Undo the last move."""
    session = await get_session(game_id)
    async with session.lock:
        if session.is_processing:
            raise HTTPException(status_code=409, detail="AI is processing a move")
        if not session.game.undo():
            raise HTTPException(status_code=400, detail="No moves to undo")
    return {"status": "ok", "message": "Move undone successfully"}


@app.post("/api/undo-pair/{game_id}")
async def undo_move_pair(game_id: str):
    """Undo the last two moves (player's move and AI's reply)."""
    session = await get_session(game_id)
    async with session.lock:
        if session.is_processing:
            raise HTTPException(status_code=409, detail="AI is processing a move")
        if not session.game.undo_pair():
            raise HTTPException(status_code=400, detail="Not enough moves to undo")
    return {"status": "ok", "message": "Two moves undone successfully"}


@app.post("/api/surrender/{game_id}")
async def surrender(game_id: str):
    """The side to move resigns."""
    session = await get_session(game_id)
    async with session.lock:
        game = session.game
        if game.is_over:
            raise HTTPException(status_code=409, detail="Game is over")
        game.surrender()
        result = {"status": "ok"}
        result.update(_outcome(game))
    return result

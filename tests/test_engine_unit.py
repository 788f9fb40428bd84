import pytest


def _build_engine(main_module, clock, repo=None, **config):
    cfg = main_module.GameConfig(seed=config.pop("seed", 7), **config)
    return main_module.GameEngine(config=cfg, repo=repo, clock=clock)


def _start(main_module, engine, difficulty="easy"):
    engine.handle(main_module.Command(verb="play"))
    return engine.handle(main_module.Command(verb=difficulty))


def _moves_to_goal(maze_module, solver_module, engine):
    P = maze_module.Position
    view = engine.view()
    start = P(**view.pos)
    goal = P(**view.goal)
    path = solver_module.solve(engine.grid, start, goal)
    return solver_module.path_directions(start, path)


def test_menu_then_difficulty_starts_playing(main_module, clock):
    engine = _build_engine(main_module, clock)
    assert engine.view().state == "menu"

    out = engine.handle(main_module.Command(verb="play"))
    assert out.view.state == "difficulty_select"

    out = engine.handle(main_module.Command(verb="difficulty", args=["Medium"]))
    assert out.view.state == "playing"
    assert out.view.size == 20
    assert out.view.pos == {"x": 0, "y": 0}
    assert out.view.goal == {"x": 19, "y": 19}
    assert out.view.move_count == 0


def test_unknown_difficulty_message(main_module, clock):
    engine = _build_engine(main_module, clock)
    engine.handle(main_module.Command(verb="play"))
    out = engine.handle(main_module.Command(verb="difficulty", args=["brutal"]))
    assert out.messages == ["Unknown difficulty."]
    assert out.view.state == "difficulty_select"


def test_open_move_updates_position(main_module, clock):
    engine = _build_engine(main_module, clock)
    view = _start(main_module, engine).view
    d = view.available_moves[0]
    out = engine.handle(main_module.Command(verb="go", args=[d]))
    assert out.view.pos != view.pos
    assert out.view.move_count == 1


def test_blocked_move_is_rejected(main_module, maze_module, clock):
    engine = _build_engine(main_module, clock)
    view = _start(main_module, engine).view
    blocked = [d.name for d in maze_module.Direction if d.name not in view.available_moves]
    assert "UP" in blocked and "LEFT" in blocked

    out = engine.handle(main_module.Command(verb="up"))
    assert out.messages == ["Blocked path."]
    assert out.view.pos == view.pos
    assert out.view.move_count == 0


def test_hint_is_shortest_path_and_expires(main_module, maze_module, solver_module, clock):
    engine = _build_engine(main_module, clock, hint_seconds=3.0)
    _start(main_module, engine)

    out = engine.handle(main_module.Command(verb="hint"))
    expected = solver_module.solve(engine.grid, maze_module.Position(0, 0), maze_module.Position(14, 14))
    assert out.view.hint == [{"x": p.x, "y": p.y} for p in expected]
    assert out.view.hint[-1] == {"x": 14, "y": 14}
    assert out.view.hints_used == 1

    clock.advance(2.5)
    assert engine.view().hint
    clock.advance(1.0)
    assert engine.view().hint == []


def test_hint_outside_play_is_unknown(main_module, clock):
    engine = _build_engine(main_module, clock)
    out = engine.handle(main_module.Command(verb="hint"))
    assert out.messages == ["Unknown command."]
    assert out.view.hint == []


def test_reaching_goal_returns_to_menu_and_records_score_once(
    main_module, maze_module, solver_module, repo, clock
):
    engine = _build_engine(main_module, clock, repo=repo, player="trinity")
    _start(main_module, engine)
    engine.handle(main_module.Command(verb="hint"))

    moves = _moves_to_goal(maze_module, solver_module, engine)
    out = None
    for d in moves:
        clock.advance(1.0)
        out = engine.handle(main_module.Command(verb=d.name.lower()))

    assert out.view.is_complete
    assert out.view.state == "menu"
    assert out.view.pos == out.view.goal
    assert out.messages == [f"Maze solved in {len(moves)} moves."]

    engine.handle(main_module.Command(verb="look"))
    scores = repo.top_scores(difficulty="EASY", limit=50)
    assert len(scores) == 1
    assert scores[0]["player"] == "trinity"
    assert scores[0]["maze_size"] == 15
    assert scores[0]["metrics"] == {"elapsed_seconds": len(moves), "moves": len(moves), "hints": 1}


def test_elapsed_time_freezes_after_finish(main_module, maze_module, solver_module, clock):
    engine = _build_engine(main_module, clock)
    _start(main_module, engine)
    for d in _moves_to_goal(maze_module, solver_module, engine):
        engine.handle(main_module.Command(verb=d.name))
    clock.advance(10.0)
    finished = engine.view().elapsed_seconds
    clock.advance(10.0)
    assert engine.view().elapsed_seconds == finished


def test_escape_returns_to_menu(main_module, clock):
    engine = _build_engine(main_module, clock)
    _start(main_module, engine)
    out = engine.handle(main_module.Command(verb="escape"))
    assert out.view.state == "menu"
    assert out.view.available_moves == []
    assert not out.view.is_complete


def test_new_difficulty_while_playing_is_refused(main_module, clock):
    engine = _build_engine(main_module, clock)
    _start(main_module, engine)
    out = engine.handle(main_module.Command(verb="hard"))
    assert out.view.size == 15
    assert out.messages


def test_regeneration_replaces_grid(main_module, clock):
    engine = _build_engine(main_module, clock)
    _start(main_module, engine, "easy")
    engine.handle(main_module.Command(verb="hint"))
    first = engine.grid
    engine.handle(main_module.Command(verb="menu"))
    out = engine.handle(main_module.Command(verb="hard"))
    assert engine.grid is not first
    assert out.view.size == 25
    assert out.view.hint == []
    assert out.view.hints_used == 0


@pytest.mark.parametrize("verb,args", [("warp", ["now"]), ("go", []), ("go", ["sideways"])])
def test_invalid_command_changes_nothing(main_module, clock, verb, args):
    engine = _build_engine(main_module, clock)
    _start(main_module, engine)
    before = engine.view()
    out = engine.handle(main_module.Command(verb=verb, args=args))
    after = engine.view()
    assert out.messages
    assert after.pos == before.pos
    assert after.move_count == before.move_count


def test_hint_on_disconnected_maze_reports_no_hint(main_module, maze_module, clock):
    engine = _build_engine(main_module, clock)
    _start(main_module, engine)
    engine.grid = maze_module.Grid.closed(15)

    out = engine.handle(main_module.Command(verb="hint"))
    assert out.messages == ["No hint available."]
    assert out.view.hint == []
    assert out.view.hints_used == 0


def test_hint_message_names_first_move(main_module, maze_module, solver_module, clock):
    engine = _build_engine(main_module, clock)
    _start(main_module, engine)
    first = _moves_to_goal(maze_module, solver_module, engine)[0]

    out = engine.handle(main_module.Command(verb="hint"))
    assert out.messages == [f"Hint: {len(out.view.hint)} steps to the goal, next {first.name.lower()}."]
    assert first.name in out.view.available_moves

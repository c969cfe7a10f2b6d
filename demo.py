"""
Play Circle Escape.
Run: venv/bin/python demo.py
Enter to start, ← → to rotate, Space to pause, Esc to end, Q to quit.
"""
from arena.engine import EscapeEngine, ArenaConfig
from arena.renderer import Renderer, AppearanceConfig
import arena as A

engine = EscapeEngine(ArenaConfig())
renderer = Renderer(AppearanceConfig())
renderer.play(engine, fps=A.FPS)

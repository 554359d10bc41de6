from __future__ import annotations

import io
import logging
import os
import threading
from typing import Optional

import numpy as np
import pygame
import secrets
from flask import Flask, Response, jsonify, make_response, render_template_string
from PIL import Image

from forcelayout.config import settings as C
from forcelayout.demo import populate
from forcelayout.logging_config import setup_logging
from forcelayout.physics.engine import ParticleSystem
from forcelayout.visualization.render import SurfaceRenderer, draw

# Ensure SDL doesn't try to open a desktop window
os.environ.setdefault("SDL_VIDEODRIVER", "dummy")

# Detect serverless platform (e.g., Vercel)
SERVERLESS = bool(os.environ.get("SERVERLESS") or os.environ.get("VERCEL"))
SERVERLESS_STEPS = 10

logger = logging.getLogger(__name__)

app = Flask(__name__)

_state_lock = threading.Lock()
_frame_lock = threading.Lock()
_system: Optional[ParticleSystem] = None
_renderer = SurfaceRenderer()
_screen: Optional[pygame.Surface] = None
_font: Optional[pygame.font.Font] = None
_font_loaded = False


def _surface_to_jpeg_bytes(surface: pygame.Surface, quality: int = 80) -> bytes:
    raw = pygame.image.tobytes(surface, "RGB")
    image = Image.frombytes("RGB", (surface.get_width(), surface.get_height()), raw)
    buf = io.BytesIO()
    image.save(buf, format="JPEG", quality=quality, optimize=True)
    return buf.getvalue()


def _load_font() -> Optional[pygame.font.Font]:
    global _font, _font_loaded
    if _font_loaded:
        return _font
    _font_loaded = True
    try:
        pygame.font.init()
        _font = pygame.font.SysFont("Menlo,Consolas,Monaco,monospace", 16)
    except (NotImplementedError, AttributeError, pygame.error):
        try:
            _font = pygame.font.Font(None, 16)
        except Exception:
            _font = None
    return _font


def _new_system() -> ParticleSystem:
    system = ParticleSystem(renderer=_renderer, seed=secrets.randbits(32))
    populate(system)
    system.set_screen_size(C.WINDOW_WIDTH, C.WINDOW_HEIGHT)
    return system


def _ensure_system() -> ParticleSystem:
    global _system
    with _state_lock:
        if _system is None:
            _system = _new_system()
            if not SERVERLESS:
                _system.start()
        return _system


def _render_frame(system: ParticleSystem) -> bytes:
    global _screen
    # one shared surface; concurrent requests take turns drawing and encoding
    with _frame_lock:
        if _screen is None:
            _screen = pygame.Surface((C.WINDOW_WIDTH, C.WINDOW_HEIGHT))
        _renderer.consume()
        draw(system, _screen, _load_font(), show_info=True)
        return _surface_to_jpeg_bytes(_screen, quality=80)


def _no_store(resp: Response) -> Response:
    resp.headers["Cache-Control"] = "no-store, no-cache, must-revalidate, max-age=0"
    return resp


@app.route("/")
def index() -> str:
    return render_template_string(
        """
<!doctype html>
<html>
  <head>
    <meta charset="utf-8" />
    <meta name="viewport" content="width=device-width, initial-scale=1" />
    <title>Force-directed layout</title>
    <style>
      html, body {
        background: #0b0e16;
        color: #e6ebf5;
        margin: 0;
        padding: 0;
        height: 100%;
        font-family: ui-sans-serif, system-ui, -apple-system, Segoe UI, Roboto, Helvetica, Arial;
      }
      .wrap {
        display: flex;
        align-items: center;
        justify-content: center;
        min-height: 100%;
        padding: 12px;
        box-sizing: border-box;
        gap: 12px;
        flex-direction: column;
      }
      canvas {
        border-radius: 8px;
        box-shadow: 0 4px 24px rgba(0,0,0,0.35);
        background: #05070c;
      }
      button {
        background: #1d2436;
        color: #e6ebf5;
        border: 1px solid #2a344d;
        padding: 6px 10px;
        border-radius: 6px;
        cursor: pointer;
      }
    </style>
  </head>
  <body>
    <div class="wrap">
      <canvas id="canvas" width="{{w}}" height="{{h}}"></canvas>
      <div>
        <button onclick="fetch('/start', {method: 'POST'})">Start</button>
        <button onclick="fetch('/stop', {method: 'POST'})">Stop</button>
        <button onclick="fetch('/reset', {method: 'POST'})">Reset</button>
      </div>
    </div>

    <script>
      (function(){
        const w = {{w}};
        const h = {{h}};
        const canvas = document.getElementById('canvas');
        const ctx = canvas.getContext('2d');

        // Avoid overlapping loads
        let loading = false;

        function drawLoop() {
          if (!loading) {
            loading = true;
            const img = new Image();
            img.onload = function() {
              try {
                ctx.drawImage(img, 0, 0, w, h);
              } finally {
                loading = false;
              }
            };
            img.onerror = function() { loading = false; };
            img.src = "/frame.jpg?t=" + Date.now();
          }
          requestAnimationFrame(drawLoop);
        }
        requestAnimationFrame(drawLoop);
      })();
    </script>
  </body>
</html>
        """,
        w=C.WINDOW_WIDTH,
        h=C.WINDOW_HEIGHT,
    )


@app.route("/frame.jpg")
def frame_jpg() -> Response:
    system = _ensure_system()
    try:
        if SERVERLESS:
            for _ in range(SERVERLESS_STEPS):
                system.tick()
        data = _render_frame(system)
    except Exception:
        logger.exception("Frame rendering failed")
        return Response(status=503)
    resp = make_response(data)
    resp.headers["Content-Type"] = "image/jpeg"
    return _no_store(resp)


@app.route("/positions.json")
def positions_json() -> Response:
    system = _ensure_system()
    nodes = system.nodes
    pos = np.array([(n.position.x, n.position.y) for n in nodes], dtype=np.float64).reshape(-1, 2)
    finite = np.isfinite(pos).all(axis=1)
    b = system.viewport_bounds
    payload = {
        "iterations": system.iterations,
        "running": system.running,
        "energy": system.energy.mean,
        "nodes": [
            {"id": n.id, "x": float(p[0]), "y": float(p[1]), "fixed": n.fixed}
            for n, p, ok in zip(nodes, pos, finite)
            if ok
        ],
        "edges": [[e.source.id, e.target.id] for e in system.edges],
        "bounds": None if b is None else [list(b.top_left), list(b.bottom_right)],
    }
    return _no_store(jsonify(payload))


@app.route("/start", methods=["POST"])
def start() -> Response:
    system = _ensure_system()
    return jsonify({"started": system.start(), "running": system.running})


@app.route("/stop", methods=["POST"])
def stop() -> Response:
    system = _ensure_system()
    return jsonify({"stopped": system.stop(), "running": system.running})


@app.route("/reset", methods=["POST"])
def reset() -> Response:
    global _system
    with _state_lock:
        if _system is not None:
            _system.close()
        _system = _new_system()
        if not SERVERLESS:
            _system.start()
        system = _system
    return jsonify({"nodes": len(system.nodes), "edges": len(system.edges)})


if __name__ == "__main__":
    setup_logging(logging.INFO)
    _ensure_system()
    app.run(host="0.0.0.0", port=5000, debug=True, threaded=True, use_reloader=False)

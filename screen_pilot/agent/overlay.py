"""Synthetic pointer, control panel and trigger listeners injected into the page."""

from __future__ import annotations

import json
from typing import Any

from .dom_tree import CONTROL_SURFACE_ATTR

POINTER_BINDING = "__screenPilotPointer"
TRIGGER_BINDING = "__screenPilotTrigger"

_OVERLAY_TEMPLATE = """
(() => {
  const cfg = __CFG_JSON__;
  const install = () => {
  if (window.__screenPilotOverlayInstalled) return true;
  const body = document.body;
  if (!body) {
    document.addEventListener('DOMContentLoaded', install, { once: true });
    return false;
  }
  window.__screenPilotOverlayInstalled = true;

  const glyphs = {
    pointer: { width: '14px', height: '20px', radius: '0', clip: 'polygon(0 0, 100% 70%, 45% 70%, 25% 100%)' },
    text: { width: '3px', height: '22px', radius: '1px', clip: 'none' },
    hand: { width: '18px', height: '18px', radius: '50%', clip: 'none' },
  };

  const cursor = document.createElement('div');
  cursor.id = '__screen_pilot_cursor';
  cursor.setAttribute(cfg.skipAttr, 'cursor');
  cursor.style.position = 'fixed';
  cursor.style.left = '0px';
  cursor.style.top = '0px';
  cursor.style.background = cfg.color;
  cursor.style.pointerEvents = 'none';
  cursor.style.zIndex = '2147483647';
  cursor.style.display = 'none';
  body.appendChild(cursor);

  const panel = document.createElement('div');
  panel.id = '__screen_pilot_panel';
  panel.setAttribute(cfg.skipAttr, 'panel');
  panel.style.position = 'fixed';
  panel.style.right = '12px';
  panel.style.bottom = '12px';
  panel.style.padding = '6px 10px';
  panel.style.font = '12px monospace';
  panel.style.color = '#fff';
  panel.style.background = 'rgba(20,20,20,0.8)';
  panel.style.borderRadius = '6px';
  panel.style.zIndex = '2147483646';
  panel.style.pointerEvents = 'none';
  panel.textContent = 'screen-pilot: idle';
  body.appendChild(panel);

  const hideCursorStyle = document.createElement('style');
  hideCursorStyle.setAttribute(cfg.skipAttr, 'style');
  document.head && document.head.appendChild(hideCursorStyle);

  window.__screenPilotAutomating = false;
  window.__screenPilotMoveCursor = (x, y) => {
    cursor.style.left = `${x}px`;
    cursor.style.top = `${y}px`;
  };
  window.__screenPilotSetMode = (mode) => {
    const glyph = glyphs[mode] || glyphs.pointer;
    cursor.dataset.mode = mode;
    cursor.style.width = glyph.width;
    cursor.style.height = glyph.height;
    cursor.style.borderRadius = glyph.radius;
    cursor.style.clipPath = glyph.clip;
  };
  window.__screenPilotSetAutomating = (flag) => {
    window.__screenPilotAutomating = !!flag;
    cursor.style.display = flag ? 'block' : 'none';
    hideCursorStyle.textContent = flag ? '* { cursor: none !important; }' : '';
  };
  window.__screenPilotSetStatus = (text) => {
    panel.textContent = `screen-pilot: ${text}`;
  };
  window.__screenPilotSetMode('pointer');
  return true;
  };
  return install();
})()
"""

_LISTENERS_TEMPLATE = """
(() => {
  const triggerKey = __TRIGGER_KEY__;
  if (window.__screenPilotListeners) return;
  window.__screenPilotListeners = true;
  window.addEventListener('mousemove', (e) => {
    if (!window.__screenPilotAutomating && window.__POINTER_BINDING__) {
      window.__POINTER_BINDING__(e.clientX, e.clientY);
    }
  });
  window.addEventListener('keydown', (e) => {
    const key = (e.key || '').toLowerCase();
    if (key === triggerKey && !window.__screenPilotAutomating && window.__TRIGGER_BINDING__) {
      window.__TRIGGER_BINDING__();
    }
  });
})()
"""


def build_overlay_script(*, color: str = "rgba(59,167,255,0.9)") -> str:
    config: dict[str, Any] = {"skipAttr": CONTROL_SURFACE_ATTR, "color": color}
    return _OVERLAY_TEMPLATE.replace("__CFG_JSON__", json.dumps(config))


def build_listeners_script(trigger_key: str) -> str:
    return (
        _LISTENERS_TEMPLATE.replace("__TRIGGER_KEY__", json.dumps((trigger_key or "").lower()))
        .replace("__POINTER_BINDING__", POINTER_BINDING)
        .replace("__TRIGGER_BINDING__", TRIGGER_BINDING)
    )

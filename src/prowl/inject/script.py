"""Client script generator.

Produces the ``<script>`` tag injected into HTML pages. The JavaScript is
self-contained (native ``EventSource`` / ``fetch``, nothing to load) and
reads its endpoints and timings from ``data-*`` attributes on its own tag,
so the same body serves every configuration.

Both variants implement the transitions of
``prowl.reactive.client.ClientStateMachine`` as a lookup table, with timers
as the only waiting mechanism.
"""

from __future__ import annotations

import html
import re
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from prowl.config import ProwlConfig


EVENT_STREAM_JS = """\
(function () {
  var inputs = document.currentScript.dataset;
  var TRANSITIONS = {
    "connected:init": "connected",
    "connected:reload": "reloading",
    "connected:error": "disconnected",
    "disconnected:error": "disconnected",
    "disconnected:init": "reloading"
  };
  var state = "connected";
  var source = null;

  function handle(signal) {
    var next = TRANSITIONS[state + ":" + signal];
    if (!next || next === state) return;
    state = next;
    if (state === "disconnected") {
      console.log("[prowl] disconnected...");
    } else if (state === "reloading") {
      source.close();
      console.log("[prowl] reload...");
      window.location.reload();
    }
  }

  addEventListener("pageshow", function () {
    state = "connected";
    source = new EventSource(inputs.eventStream);
    ["init", "reload", "error"].forEach(function (name) {
      source.addEventListener(name, function () { handle(name); });
    });
    console.log("[prowl] connected...");
  });

  addEventListener("pagehide", function () {
    if (source) source.close();
  });
})();
"""


LONG_POLL_JS = """\
(function () {
  var inputs = document.currentScript.dataset;
  var interval = parseInt(inputs.reloadInterval, 10);
  var probeTimeout = parseInt(inputs.probeTimeout, 10);
  var TRANSITIONS = {
    "connected:poll_reload": ["reloading", "reload"],
    "connected:poll_timeout": ["connected", "reopen_poll"],
    "connected:poll_failed": ["probing", "probe"],
    "probing:probe_failed": ["probing", "schedule_probe"],
    "probing:probe_ok": ["reloading", "reload"]
  };
  var state = "connected";
  var controller = null;
  var unloaded = false;

  function handle(signal) {
    var step = TRANSITIONS[state + ":" + signal];
    if (!step) return;
    state = step[0];
    switch (step[1]) {
      case "reload":
        console.log("[prowl] reload...");
        window.location.reload();
        break;
      case "reopen_poll":
        poll();
        break;
      case "probe":
        console.log("[prowl] disconnected...");
        probe();
        break;
      case "schedule_probe":
        setTimeout(probe, interval);
        break;
    }
  }

  function poll() {
    controller = new AbortController();
    fetch(inputs.longPoll, { cache: "no-store", signal: controller.signal })
      .then(function (rsp) { return rsp.ok ? rsp.text() : null; })
      .catch(function () { return null; })
      .then(function (body) {
        if (unloaded) return;
        if (body === "reload") handle("poll_reload");
        else if (body === "timeout") handle("poll_timeout");
        else handle("poll_failed");
      });
  }

  function probe() {
    var probeController = new AbortController();
    var timer = setTimeout(function () { probeController.abort(); }, probeTimeout);
    fetch(inputs.probe, { cache: "no-store", signal: probeController.signal })
      .then(function (rsp) { return rsp.ok; })
      .catch(function () { return false; })
      .then(function (ok) {
        clearTimeout(timer);
        if (!unloaded) handle(ok ? "probe_ok" : "probe_failed");
      });
  }

  addEventListener("pageshow", function () {
    state = "connected";
    unloaded = false;
    console.log("[prowl] connected...");
    poll();
  });

  addEventListener("pagehide", function () {
    unloaded = true;
    if (controller) controller.abort();
  });
})();
"""

_VARIANTS: dict[str, str] = {
    "event-stream": EVENT_STREAM_JS,
    "long-poll": LONG_POLL_JS,
}

# Sequences that would end or confuse a <script> element early.
_CLOSE_SCRIPT = re.compile(r"</(script)", re.IGNORECASE)
_OPEN_COMMENT = re.compile(r"<!--")


def escape_js(source: str) -> str:
    """Make JavaScript safe to embed verbatim inside a ``<script>`` element."""
    source = _CLOSE_SCRIPT.sub(r"<\\/\1", source)
    return _OPEN_COMMENT.sub(r"<\\!--", source)


def script_attributes(config: ProwlConfig) -> dict[str, str]:
    """The ``data-*`` parameters the client script reads."""
    return {
        "event-stream": config.event_stream_path,
        "long-poll": config.long_poll_path,
        "probe": config.probe_path,
        "reload-interval": str(config.reload_interval_ms),
        "probe-timeout": str(config.probe_timeout_ms),
    }


def render_script(config: ProwlConfig) -> bytes:
    """Render the complete ``<script>`` tag for *config*.

    Deterministic: the same config always yields the same bytes.
    """
    source = config.script_template or _VARIANTS[config.transport]
    attrs = "".join(
        f' data-{name}="{html.escape(value, quote=True)}"'
        for name, value in script_attributes(config).items()
    )
    tag = f'<script data-prowl="{config.transport}"{attrs}>\n{escape_js(source)}</script>\n'
    return tag.encode("utf-8")

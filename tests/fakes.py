"""Stand-ins for requests.Session and the map widget used across tests."""

import json

import requests


class FakeResponse:
    def __init__(self, status_code=200, payload=None, text=None, url="https://upstream.test/"):
        self.status_code = status_code
        self._payload = payload
        self.text = text if text is not None else json.dumps(payload)
        self.url = url

    @property
    def ok(self):
        return 200 <= self.status_code < 300

    def json(self):
        if self._payload is None:
            return json.loads(self.text)
        return self._payload


class FakeSession:
    """Routes GETs by URL prefix to canned responses and records every call."""

    def __init__(self, routes=None):
        self.routes = dict(routes or {})
        self.calls = []

    def get(self, url, params=None, headers=None, timeout=None):
        self.calls.append({"url": url, "params": dict(params or {}), "timeout": timeout})
        for prefix, response in self.routes.items():
            if url.startswith(prefix):
                if isinstance(response, Exception):
                    raise response
                if callable(response):
                    return response(url, params)
                return response
        raise requests.ConnectionError(f"no route for {url}")

    def params_for(self, prefix):
        for call in reversed(self.calls):
            if call["url"].startswith(prefix):
                return call["params"]
        return None


class FakeLayer:
    def __init__(self, url, opacity, z_index, group, on_loading, on_load):
        self.url = url
        self.opacity = opacity
        self.z_index = z_index
        self.group = group
        self.on_loading = on_loading
        self.on_load = on_load
        self.removed = False

    def load_tiles(self, count=2):
        for _ in range(count):
            self.on_loading()
        for _ in range(count):
            self.on_load()


class FakeMap:
    def __init__(self):
        self.groups = []
        self.layers = []
        self.front = None
        self.shown = []
        self.removed_groups = []

    def create_group(self, name):
        group = {"name": name}
        self.groups.append(group)
        return group

    def create_layer(self, url, opacity, z_index, group, on_loading, on_load):
        layer = FakeLayer(url, opacity, z_index, group, on_loading, on_load)
        self.layers.append(layer)
        return layer

    def set_opacity(self, layer, opacity):
        layer.opacity = opacity

    def bring_to_front(self, layer):
        self.front = layer
        self.shown.append(layer)

    def remove_layer(self, layer):
        layer.removed = True

    def remove_group(self, group):
        self.removed_groups.append(group)


class FakeTimer:
    def __init__(self):
        self.interval = None
        self.on_tick = None
        self.running = False
        self.starts = 0

    def start(self, interval, on_tick):
        self.interval = interval
        self.on_tick = on_tick
        self.running = True
        self.starts += 1

    def stop(self):
        self.running = False

    def tick(self, times=1):
        for _ in range(times):
            self.on_tick()

from __future__ import annotations

import logging
from dataclasses import replace
from typing import Mapping, Optional

from flask import Flask, jsonify, request

from .config import SETTINGS, configure_logging
from .errors import ConfigurationError, DecodeError, FetchError, InvalidDimensionsError
from .infrastructure.decode import decode_image
from .infrastructure.network import FETCHER
from .processing.color import parse_hex_color
from .processing.dither import KERNELS
from .processing.palette import PALETTES
from .processing.pipeline import DitherOptions, output_filename, process_image
from .responses import send_encoded

APP_VERSION = "1.0.0"

log = logging.getLogger(__name__)


def _parse_number(args: Mapping[str, str], name: str, cast):
    try:
        return cast(args[name])
    except (TypeError, ValueError):
        raise ConfigurationError(f"Expected {cast.__name__} for {name!r}, got {args[name]!r}") from None


def options_from_args(
    args: Mapping[str, str], base: DitherOptions, max_dimension: Optional[int] = None
) -> DitherOptions:
    """Overlay request arguments on ``base`` options."""
    changes: dict[str, object] = {}
    for name in ("width", "height"):
        if name in args:
            value = _parse_number(args, name, int)
            if max_dimension is not None and value > max_dimension:
                raise ConfigurationError(f"{name} must be at most {max_dimension}, got {value}")
            changes[name] = value
    for name in ("strength", "contrast"):
        if name in args:
            changes[name] = _parse_number(args, name, float)
    for name in ("mode", "algorithm", "palette"):
        if name in args:
            changes[name] = str(args[name]).lower()
    if "background" in args:
        changes["background"] = parse_hex_color(args["background"])
    if "offset_x" in args or "offset_y" in args:
        offset_x = _parse_number(args, "offset_x", float) if "offset_x" in args else base.offset[0]
        offset_y = _parse_number(args, "offset_y", float) if "offset_y" in args else base.offset[1]
        changes["offset"] = (offset_x, offset_y)
    return replace(base, **changes)


def create_app() -> Flask:
    configure_logging()
    app = Flask(__name__)
    defaults = DitherOptions.from_settings(SETTINGS)

    @app.errorhandler(ConfigurationError)
    @app.errorhandler(InvalidDimensionsError)
    def bad_request(exc):
        return jsonify(error=str(exc)), 400

    @app.errorhandler(DecodeError)
    def undecodable(exc):
        return jsonify(error=str(exc)), 422

    @app.errorhandler(FetchError)
    def upstream_failed(exc):
        return jsonify(error=str(exc)), 502

    @app.route("/dither", methods=["POST"])
    def dither_upload():
        options = options_from_args(request.args, defaults, SETTINGS.max_dimension)
        upload = request.files.get("image")
        if upload is not None:
            name = upload.filename or "image"
            data = upload.read()
        elif request.args.get("source_url"):
            source_url = request.args["source_url"]
            name = source_url.rstrip("/").rsplit("/", 1)[-1] or "photo"
            data = FETCHER.fetch_bytes(source_url)
        else:
            raise ConfigurationError("Provide an 'image' upload or a 'source_url'")

        encoded = process_image(decode_image(data), options)
        filename = output_filename(name)
        log.info("Converted %s -> %s (%s bytes)", name, filename, len(encoded))
        return send_encoded(encoded, filename)

    @app.route("/palettes")
    def palettes():
        return jsonify(
            {
                key: {"name": palette.name, "colors": [list(rgb) for rgb in palette.colors]}
                for key, palette in PALETTES.items()
            }
        )

    @app.route("/algorithms")
    def algorithms():
        return jsonify({key: kernel.name for key, kernel in KERNELS.items()})

    @app.route("/health")
    def health():
        return jsonify(
            ok=True,
            version=APP_VERSION,
            width=defaults.width,
            height=defaults.height,
            algorithm=defaults.algorithm,
            palette=defaults.palette,
        )

    return app


# Module-level application for WSGI servers (``eink_dither.app:app``).
app = create_app()
application = app

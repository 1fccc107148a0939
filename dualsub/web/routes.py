"""HTTP API routes for DualSub."""

import logging
from dataclasses import asdict

from flask import Blueprint, current_app, jsonify, request

from dualsub.analyzers.drift import detect_timing_issues
from dualsub.analyzers.paragraphs import (
    ParagraphOptions,
    apply_translations,
    convert_subtitles_to_paragraphs,
    create_translation_batches,
    estimate_tokens,
)
from dualsub.lookup import SubtitleIndex
from dualsub.sentences import get_reconstruction_stats, reconstruct_sentence_objects
from dualsub.timing import (
    DEFAULT_TIMING,
    deserialize_timing_config,
    serialize_timing_config,
    timing_config_from_dict,
    timing_config_to_dict,
    validate_timing_config,
)
from dualsub.track import parse_captions

logger = logging.getLogger(__name__)

bp = Blueprint("api", __name__)


class RequestError(Exception):
    def __init__(self, message: str, status: int = 400):
        super().__init__(message)
        self.message = message
        self.status = status


@bp.errorhandler(RequestError)
def handle_request_error(error: RequestError):
    return jsonify({"error": error.message}), error.status


def _cache():
    return current_app.config["CACHE"]


def _track_key(video_id: str) -> str:
    return f"track:{video_id}"


def _timing_key(session_id: str) -> str:
    return f"timing:{session_id}"


def _json_body() -> dict:
    body = request.get_json(silent=True)
    if not isinstance(body, dict):
        raise RequestError("Request body must be a JSON object")
    return body


def _fragments_from(body: dict):
    """Subtitles inline, or a cached track referenced by ``videoId``."""
    if "subtitles" in body:
        if not isinstance(body["subtitles"], list):
            raise RequestError("'subtitles' must be an array")
        return parse_captions(body["subtitles"])
    if "videoId" in body:
        fragments = _cache().get(_track_key(str(body["videoId"])))
        if fragments is None:
            raise RequestError("Track not found", 404)
        return fragments
    raise RequestError("Provide 'subtitles' or 'videoId'")


def _time_from(body: dict, key: str = "currentTime") -> float:
    value = body.get(key, 0.0)
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise RequestError(f"'{key}' must be a number")
    return float(value)


def _fragment_dict(fragment) -> dict:
    return {"start": fragment.start, "end": fragment.end, "text": fragment.text}


# ---------------------------------------------------------------------------
# Tracks
# ---------------------------------------------------------------------------


@bp.route("/api/tracks/<video_id>", methods=["PUT"])
def put_track(video_id: str):
    body = _json_body()
    fragments = _fragments_from({"subtitles": body.get("subtitles")})
    _cache().set(_track_key(video_id), fragments)
    logger.info("Cached track %s with %d fragments", video_id, len(fragments))
    return jsonify({"videoId": video_id, "count": len(fragments)})


@bp.route("/api/tracks/<video_id>")
def get_track(video_id: str):
    fragments = _cache().get(_track_key(video_id))
    if fragments is None:
        return jsonify({"error": "Track not found"}), 404
    return jsonify({
        "videoId": video_id,
        "subtitles": [_fragment_dict(f) for f in fragments],
        "fromCache": True,
    })


# ---------------------------------------------------------------------------
# Sentences and paragraphs
# ---------------------------------------------------------------------------


@bp.route("/api/sentences", methods=["POST"])
def sentences():
    body = _json_body()
    if "transcript" in body:
        transcript = body["transcript"]
        if not isinstance(transcript, list):
            raise RequestError("'transcript' must be an array")
        source = [t if isinstance(t, str) else "" for t in transcript]
        texts = source
    else:
        source = _fragments_from(body)
        texts = [f.text for f in source]

    result = reconstruct_sentence_objects(source)
    stats = get_reconstruction_stats(texts, [s.text for s in result])
    return jsonify({
        "sentences": [
            {
                "id": s.id,
                "text": s.text,
                "sourceFragmentIndices": s.source_fragment_indices,
                "start": s.start,
                "end": s.end,
            }
            for s in result
        ],
        "stats": asdict(stats),
    })


@bp.route("/api/paragraphs", methods=["POST"])
def paragraphs():
    body = _json_body()
    fragments = _fragments_from(body)
    opts = body.get("options") or {}
    try:
        options = ParagraphOptions(
            min_sentences=int(opts.get("minSentences", 3)),
            max_sentences=int(opts.get("maxSentences", 5)),
            max_length=int(opts.get("maxLength", 150)),
        )
        batch_size = int(body.get("maxBatchSize", 100))
        result = convert_subtitles_to_paragraphs(fragments, options)
        batches = create_translation_batches(result, batch_size)
    except (TypeError, ValueError, AttributeError) as e:
        raise RequestError(f"Invalid options: {e}") from e

    # Translations from an earlier batch round trip, matched by position.
    if "translations" in body:
        translations = body["translations"]
        if not isinstance(translations, list):
            raise RequestError("'translations' must be an array")
        result = apply_translations(result, [t if isinstance(t, str) else "" for t in translations])

    return jsonify({
        "paragraphs": [
            {
                "id": p.id,
                "text": p.text,
                "translation": p.translation,
                "startTime": p.start,
                "endTime": p.end,
                "subtitleIndices": p.fragment_indices,
                "estimatedTokens": estimate_tokens(p.text),
            }
            for p in result
        ],
        "batches": batches,
        "estimatedTokens": sum(estimate_tokens(p.text) for p in result),
    })


# ---------------------------------------------------------------------------
# Timing
# ---------------------------------------------------------------------------


def _timing_response(config) -> dict:
    data = timing_config_to_dict(config)
    data["relativeOffset"] = config.relative_offset
    return data


@bp.route("/api/timing/sessions/<session_id>")
def get_timing(session_id: str):
    config = deserialize_timing_config(_cache().get(_timing_key(session_id)))
    return jsonify(_timing_response(config))


@bp.route("/api/timing/sessions/<session_id>", methods=["PUT"])
def put_timing(session_id: str):
    body = _json_body()
    if not validate_timing_config(body):
        raise RequestError("Invalid timing config")
    config = timing_config_from_dict(body)
    _cache().set(_timing_key(session_id), serialize_timing_config(config))
    return jsonify(_timing_response(config))


@bp.route("/api/timing/detect", methods=["POST"])
def detect():
    body = _json_body()
    fragments = _fragments_from(body)
    result = detect_timing_issues(fragments, _time_from(body))
    return jsonify({
        "recommendation": _timing_response(result.recommendation),
        "confidence": result.confidence,
        "analysis": result.analysis,
        "detected": result.detected,
    })


@bp.route("/api/timing/lookup", methods=["POST"])
def lookup():
    body = _json_body()
    fragments = _fragments_from(body)
    current_time = _time_from(body)

    if "timing" in body:
        config = timing_config_from_dict(body["timing"])
    elif "sessionId" in body:
        config = deserialize_timing_config(_cache().get(_timing_key(str(body["sessionId"]))))
    else:
        config = DEFAULT_TIMING

    index = SubtitleIndex(fragments, config).find_index(current_time)
    return jsonify({
        "text": fragments[index].text if index is not None else "",
        "index": index,
        "timing": _timing_response(config),
    })

"""
REST API for campusfeed.

Flask application factory exposing announcement listing/creation, ad-hoc
classification and the Facebook scrape trigger.
"""

from typing import Any, Callable, Dict, Optional

from flask import Flask, jsonify, request

from .classify import CATEGORIES, classify
from .facebook import ConfigurationError, FacebookScraper, resolve_sources
from .settings import Settings, load_settings
from .storage import open_storage


def _string_list(value: Any) -> Optional[list]:
    if value is None:
        return None
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise ValueError("must be a list of strings")
    return value


def create_app(
    storage=None,
    settings: Optional[Settings] = None,
    scraper_factory: Optional[Callable[[], FacebookScraper]] = None,
) -> Flask:
    """
    Create the Flask application.

    Args:
        storage: Announcement store (default: open_storage(settings.db_path))
        settings: Settings (default: load_settings())
        scraper_factory: Zero-argument callable returning a FacebookScraper;
            called once per scrape request

    Returns:
        Configured Flask app
    """
    settings = settings or load_settings()
    if storage is None:
        storage = open_storage(settings.db_path)

    if scraper_factory is None:
        def scraper_factory() -> FacebookScraper:
            return FacebookScraper.from_settings(
                settings,
                sources=resolve_sources(settings.sources_path),
            )

    app = Flask(__name__)
    app.config["STORAGE"] = storage
    app.config["SETTINGS"] = settings

    @app.route("/api/announcements", methods=["GET"])
    def list_announcements():
        category = request.args.get("category") or None
        interests = request.args.get("interests")
        interests_list = [i for i in interests.split(",") if i] if interests else None

        try:
            announcements = storage.get_announcements_by_filter(category, interests_list)
        except Exception as e:
            print(f"[ERROR] Failed to list announcements: {e}")
            return jsonify({"message": "Internal server error"}), 500

        return jsonify([a.to_dict() for a in announcements])

    @app.route("/api/announcements/<int:announcement_id>", methods=["GET"])
    def get_announcement(announcement_id: int):
        announcement = storage.get_announcement(announcement_id)
        if announcement is None:
            return jsonify({"message": "Announcement not found"}), 404
        return jsonify(announcement.to_dict())

    @app.route("/api/announcements", methods=["POST"])
    def create_announcement():
        data: Dict[str, Any] = request.get_json(silent=True) or {}

        title = data.get("title")
        content = data.get("content")
        if not isinstance(title, str) or not title.strip() or not isinstance(content, str) or not content.strip():
            return jsonify({"message": "title and content required"}), 400

        category = data.get("category")
        if category is not None and category not in CATEGORIES:
            return jsonify({
                "message": "Invalid category",
                "error": f"category must be one of: {', '.join(CATEGORIES)}",
            }), 400

        try:
            interests = _string_list(data.get("relevantInterests"))
            majors = _string_list(data.get("relevantMajors"))
        except ValueError as e:
            return jsonify({"message": "Invalid announcement data", "error": f"relevantInterests/relevantMajors {e}"}), 400

        result = classify(content)
        candidate = {
            "title": title,
            "content": content,
            "category": category or result.category,
            "relevant_interests": interests or result.relevant_interests,
            "relevant_majors": majors or result.relevant_majors,
        }

        try:
            announcement = storage.create_announcement(candidate)
        except Exception as e:
            print(f"[ERROR] Failed to create announcement: {e}")
            return jsonify({"message": "Internal server error"}), 500

        return jsonify(announcement.to_dict()), 201

    @app.route("/api/classify", methods=["POST"])
    def classify_text():
        data = request.get_json(silent=True) or {}
        text = data.get("text")
        if not isinstance(text, str):
            return jsonify({"message": "text required"}), 400
        return jsonify(classify(text).to_dict())

    @app.route("/api/scrape-facebook", methods=["POST"])
    def scrape_facebook():
        try:
            scraper = scraper_factory()
            count = scraper.scrape_and_store_announcements(storage)
        except ConfigurationError as e:
            print(f"[ERROR] Facebook scraping not configured: {e}")
            return jsonify({"message": "Failed to scrape Facebook posts", "error": str(e)}), 500
        except Exception as e:
            print(f"[ERROR] Facebook scraping error: {e}")
            return jsonify({
                "message": "Failed to scrape Facebook posts",
                "error": str(e) or "Unknown error",
            }), 500

        return jsonify({
            "message": f"Successfully scraped and stored {count} announcements from Facebook",
            "count": count,
        })

    return app

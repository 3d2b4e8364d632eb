from flask import Flask, Response, jsonify, request

from pokecontact import config, pokeapi
from pokecontact.associations import AssociationStore, create_contact_with_profile
from pokecontact.compatibility import compatibility, compatibility_level
from pokecontact.contacts import LocalContactStore, validate_phone_number
from pokecontact.errors import (
    AssociationStoreError,
    ContactPermissionError,
    ContactStoreError,
    FetchError,
    FetchTimeoutError,
    ValidationError,
)
from pokecontact.logger import configure_logging, log_action
from pokecontact.models import CustomStats
from pokecontact.pokeapi import CatalogClient
from pokecontact.scheduler import rank_by_compatibility
from pokecontact.share import dumps_share_payload, import_shared_contact
from pokecontact.storage import JsonFileBlobStore


def create_app(client=None, blob_store=None, contacts=None, associations=None, config_overrides=None):
    """Build the Flask app; collaborators default to the real PokeAPI client and the JSON store."""
    app = Flask(__name__)
    app.config.update(config.as_dict())
    app.config.update(config_overrides or {})

    configure_logging(app.config.get("LOG_FILE") or None)

    if client is None:
        client = CatalogClient(timeout=app.config["REQUEST_TIMEOUT"])
    if blob_store is None:
        blob_store = JsonFileBlobStore(app.config["STORE_FILE"])
    if contacts is None:
        contacts = LocalContactStore(blob_store)
    if associations is None:
        associations = AssociationStore(blob_store, contacts)

    app.extensions["pokecontact"] = {
        "client": client,
        "contacts": contacts,
        "associations": associations,
    }
    register_routes(app, client, contacts, associations)
    return app


def _error(message, status):
    return jsonify({"error": message}), status


def _custom_stats(body):
    raw = body.get("customStats")
    return CustomStats.from_dict(raw) if isinstance(raw, dict) else None


def _matches_query(contact, q: str, type_filter: str) -> bool:
    if q:
        ql = q.lower()
        if not (ql in contact.name.lower() or q in contact.phoneNumber or q in str(contact.profile.id)):
            return False
    if type_filter and type_filter.lower() != "all":
        if type_filter.lower() not in [t.lower() for t in contact.types]:
            return False
    return True


def register_routes(app, client, contacts, associations):

    @app.errorhandler(ValidationError)
    def handle_validation(e):
        return jsonify({"error": str(e), "field": e.field}), 400

    @app.errorhandler(FetchTimeoutError)
    def handle_timeout(e):
        return _error(str(e), 504)

    @app.errorhandler(FetchError)
    def handle_fetch(e):
        return _error(str(e), 502)

    @app.errorhandler(ContactPermissionError)
    def handle_permission(e):
        return _error(str(e), 403)

    @app.errorhandler(ContactStoreError)
    def handle_contacts(e):
        return _error(str(e), 404)

    @app.errorhandler(AssociationStoreError)
    def handle_store(e):
        return _error(str(e), 500)

    @app.route('/toggle_logging')
    def toggle_logging():
        pokeapi.set_verbose(not pokeapi.ENABLE_VERBOSE_LOGGING)
        state = "enabled" if pokeapi.ENABLE_VERBOSE_LOGGING else "disabled"
        return jsonify({"message": f"Verbose logging {state}", "verbose": pokeapi.ENABLE_VERBOSE_LOGGING})

    @app.route('/api/cache/clear', methods=['POST'])
    def clear_cache_route():
        client.clear_cache()
        catalog = request.args.get("catalog") in ("1", "true")
        if catalog:
            client.clear_catalog()
        return jsonify({"cleared": True, "catalog": catalog})

    # ---- catalog ----------------------------------------------------------- #

    @app.route('/api/pokemon/random')
    def random_pokemon():
        return jsonify(client.fetch_random_profile().to_dict())

    @app.route('/api/pokemon/<key>')
    def pokemon_detail(key):
        return jsonify(client.fetch_profile(key).to_dict())

    @app.route('/api/catalog/search')
    def catalog_search():
        results = client.search_catalog(request.args.get("q", ""))
        return jsonify([e.to_dict() for e in results])

    # ---- contacts ---------------------------------------------------------- #

    @app.route('/api/contacts')
    def contact_list():
        q = request.args.get("q", "").strip()
        type_filter = request.args.get("type", "").strip()
        merged = [c for c in associations.list_with_profiles() if _matches_query(c, q, type_filter)]
        return jsonify([c.to_dict() for c in merged])

    @app.route('/api/contacts', methods=['POST'])
    def contact_create():
        body = request.get_json(silent=True) or {}
        if not str(body.get("name") or "").strip():
            raise ValidationError("name", "Please enter a contact name")
        if body.get("pokemon") in (None, ""):
            raise ValidationError("pokemon", "Please select a Pokemon first")
        phone = validate_phone_number(body.get("phoneNumber"))

        profile = client.fetch_profile(body["pokemon"])
        contact_id = create_contact_with_profile(contacts, associations, body["name"], phone,
                                                 profile, _custom_stats(body))
        return jsonify(associations.get_merged(contact_id).to_dict()), 201

    @app.route('/api/contacts/<contact_id>', methods=['PUT'])
    def contact_update(contact_id):
        body = request.get_json(silent=True) or {}
        current = associations.get(contact_id)
        if current is None:
            return _error(f"No Pokemon assigned to contact {contact_id}", 404)

        phone = validate_phone_number(body.get("phoneNumber"))
        profile = client.fetch_profile(body["pokemon"]) if body.get("pokemon") else current.profile
        custom = _custom_stats(body) or current.custom_stats

        new_id = contacts.update(contact_id, body.get("name"), phone)
        if new_id != str(contact_id):
            associations.remove(contact_id)
        associations.save(new_id, profile, custom)
        return jsonify(associations.get_merged(new_id).to_dict())

    @app.route('/api/contacts/<contact_id>', methods=['DELETE'])
    def contact_delete(contact_id):
        contacts.delete(contact_id)
        associations.remove(contact_id)
        return jsonify({"deleted": contact_id})

    @app.route('/api/contacts/bulk-delete', methods=['POST'])
    def contact_bulk_delete():
        body = request.get_json(silent=True) or {}
        ids = body.get("ids")
        if not isinstance(ids, list):
            raise ValidationError("ids", "ids must be a list")
        outcomes = associations.remove_many(ids, delete_contacts=True)
        return jsonify([o.to_dict() for o in outcomes])

    # ---- compatibility ------------------------------------------------------ #

    def _merged_or_404(contact_id):
        merged = associations.get_merged(contact_id)
        if merged is None:
            raise ContactStoreError(f"Contact with ID {contact_id} not found")
        return merged

    @app.route('/api/contacts/<contact_id>/compatibility/<other_id>')
    def contact_compatibility(contact_id, other_id):
        score = compatibility(_merged_or_404(contact_id), _merged_or_404(other_id))
        return jsonify({"score": score, "level": compatibility_level(score)})

    @app.route('/api/contacts/<contact_id>/matches')
    def contact_matches(contact_id):
        reference = _merged_or_404(contact_id)
        threshold = request.args.get("threshold", app.config["MATCH_THRESHOLD"], type=int)
        batch_size = request.args.get("batch_size", app.config["BATCH_SIZE"], type=int)
        if batch_size is None or batch_size < 1:
            raise ValidationError("batch_size", "batch_size must be a positive integer")

        others = [c for c in associations.list_with_profiles() if c.id != reference.id]
        task = rank_by_compatibility(reference, others, threshold=threshold, batch_size=batch_size)
        ranked = task.run()
        log_action(f"Ranked {len(others)} contacts for {reference.id}")
        return jsonify([
            {"contact": c.to_dict(), "score": s, "level": compatibility_level(s)}
            for c, s in ranked
        ])

    # ---- sharing ------------------------------------------------------------ #

    @app.route('/api/contacts/<contact_id>/share')
    def contact_share(contact_id):
        return Response(dumps_share_payload(_merged_or_404(contact_id)), mimetype="application/json")

    @app.route('/api/contacts/import', methods=['POST'])
    def contact_import():
        payload = request.get_json(silent=True)
        if payload is None:
            payload = request.get_data(as_text=True)
        contact_id = import_shared_contact(payload, client, contacts, associations)
        return jsonify(associations.get_merged(contact_id).to_dict()), 201


if __name__ == '__main__':
    create_app().run(debug=True)

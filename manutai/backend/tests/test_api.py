from __future__ import annotations

import importlib
from urllib.parse import unquote

import pytest

from services.storage_service import SEED_ADMIN_EMAIL, SEED_ADMIN_ID, SEED_ADMIN_PASSWORD

API = "/api/v1"


def _as(user) -> dict[str, str]:
    return {"X-User-Id": user.id}


def _create_template(client, admin, title="Forklift Check", items=("Brakes", "Lights")):
    response = client.post(
        f"{API}/templates",
        json={"title": title, "description": "Diária", "items": list(items)},
        headers=_as(admin),
    )
    assert response.status_code == 201
    return response.json()


def _run_inspection(client, technician, template_id, answers):
    started = client.post(f"{API}/inspections", json={"template_id": template_id}, headers=_as(technician))
    assert started.status_code == 201
    state = started.json()
    for answer in answers:
        response = client.post(
            f"{API}/inspections/{state['session_id']}/answers",
            json={"text": answer},
            headers=_as(technician),
        )
        assert response.status_code == 200
        state = response.json()
    return state


def _run_inspection_answer(client, technician, session_id, text):
    response = client.post(
        f"{API}/inspections/{session_id}/answers",
        json={"text": text},
        headers=_as(technician),
    )
    assert response.status_code == 200
    return response.json()


def _change_password(client, caller, user_id, new, confirm=None):
    headers = _as(caller) if caller is not None else {}
    return client.post(
        f"{API}/auth/change-password",
        json={"user_id": user_id, "new_password": new, "confirm_password": new if confirm is None else confirm},
        headers=headers,
    )


def test_root_reports_service(client):
    response = client.get("/")

    assert response.status_code == 200
    assert response.json()["service"] == "ManutAI"


def test_health_reports_database_and_fallback_assistant(client):
    body = client.get("/health").json()

    assert body["status"] == "healthy"
    assert body["database"] == {"connected": True}
    assert body["assistant"] == {"mode": "fallback"}
    assert body["live_sessions"] == 0


def test_invalid_payload_uses_validation_envelope(client, technician):
    response = client.post(f"{API}/inspections", json={}, headers=_as(technician))

    assert response.status_code == 422
    assert response.json()["error"]["type"] == "validation_error"


def test_request_id_is_echoed(client):
    response = client.get("/", headers={"X-Request-ID": "req-42"})

    assert response.headers["X-Request-ID"] == "req-42"
    assert "X-Response-Time-ms" in response.headers


def test_seeded_admin_login_requires_password_change(client, seeded_admin):
    response = client.post(f"{API}/auth/login", json={"email": SEED_ADMIN_EMAIL, "password": SEED_ADMIN_PASSWORD})

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == SEED_ADMIN_ID
    assert body["role"] == "ADMIN"
    assert body["must_change_password"] is True
    assert "password" not in body


@pytest.mark.parametrize(
    "payload, code, message",
    [
        ({"email": "", "password": ""}, 400, "Preencha todos os campos."),
        ({"email": SEED_ADMIN_EMAIL}, 400, "Preencha todos os campos."),
        ({"email": SEED_ADMIN_EMAIL, "password": "errada"}, 401, "E-mail ou senha incorretos."),
    ],
)
def test_login_failures_use_error_envelope(client, seeded_admin, payload, code, message):
    response = client.post(f"{API}/auth/login", json=payload)

    assert response.status_code == code
    error = response.json()["error"]
    assert error["type"] == "http_error"
    assert error["message"] == message


@pytest.mark.parametrize(
    "new, confirm, message",
    [
        ("abcd", "abce", "As senhas não coincidem."),
        ("abc", "abc", "A senha deve ter pelo menos 4 caracteres."),
    ],
)
def test_change_password_validation(client, seeded_admin, new, confirm, message):
    response = _change_password(client, seeded_admin, seeded_admin.id, new, confirm)

    assert response.status_code == 400
    assert response.json()["error"]["message"] == message


def test_anonymous_caller_cannot_change_a_password(client, seeded_admin, storage):
    response = _change_password(client, None, SEED_ADMIN_ID, "hacked")

    assert response.status_code == 401
    assert storage.get_user(SEED_ADMIN_ID).password == SEED_ADMIN_PASSWORD


def test_caller_cannot_change_someone_elses_password(client, technician, storage):
    response = _change_password(client, technician, SEED_ADMIN_ID, "hacked")

    assert response.status_code == 403
    assert response.json()["error"]["message"] == "Você só pode alterar a sua própria senha."
    assert storage.get_user(SEED_ADMIN_ID).password != "hacked"


def test_change_password_then_login_with_new_one(client, seeded_admin):
    changed = _change_password(client, seeded_admin, seeded_admin.id, "nova")
    assert changed.status_code == 200
    assert changed.json()["must_change_password"] is False

    old = client.post(f"{API}/auth/login", json={"email": SEED_ADMIN_EMAIL, "password": SEED_ADMIN_PASSWORD})
    new = client.post(f"{API}/auth/login", json={"email": SEED_ADMIN_EMAIL, "password": "nova"})

    assert old.status_code == 401
    assert new.status_code == 200
    assert new.json()["must_change_password"] is False


def test_pending_password_change_blocks_every_other_route(client, seeded_admin):
    headers = _as(seeded_admin)
    payload = {"title": "Compressor", "items": ["Pressão"]}

    blocked = client.post(f"{API}/templates", json=payload, headers=headers)
    assert blocked.status_code == 403
    assert blocked.json()["error"]["message"] == "Altere sua senha antes de continuar."
    assert client.get(f"{API}/users", headers=headers).status_code == 403
    assert client.get(f"{API}/dashboard", headers=headers).status_code == 403

    assert _change_password(client, seeded_admin, seeded_admin.id, "nova").status_code == 200
    assert client.post(f"{API}/templates", json=payload, headers=headers).status_code == 201


def test_missing_or_unknown_user_header_is_unauthorized(client, admin):
    assert client.get(f"{API}/templates").status_code == 401
    assert client.get(f"{API}/templates", headers={"X-User-Id": "ghost"}).status_code == 401


def test_technician_cannot_use_admin_routes(client, technician):
    headers = _as(technician)

    assert client.get(f"{API}/users", headers=headers).status_code == 403
    assert client.post(f"{API}/templates", json={"title": "x", "items": ["y"]}, headers=headers).status_code == 403
    assert client.delete(f"{API}/reports/any", headers=headers).status_code == 403
    assert client.delete(f"{API}/users/{SEED_ADMIN_ID}", headers=headers).status_code == 403


def test_admin_manages_users(client, admin, storage):
    created = client.post(
        f"{API}/users",
        json={"name": "Bruno", "email": "bruno@example.com", "password": "1234"},
        headers=_as(admin),
    )
    assert created.status_code == 201
    assert created.json()["role"] == "TECNICO"
    assert "password" not in created.json()

    duplicate = client.post(
        f"{API}/users",
        json={"name": "Outro", "email": "bruno@example.com", "password": "1234"},
        headers=_as(admin),
    )
    assert duplicate.status_code == 409
    assert duplicate.json()["error"]["message"] == "E-mail já cadastrado."

    incomplete = client.post(f"{API}/users", json={"name": "Sem email"}, headers=_as(admin))
    assert incomplete.status_code == 400

    listed = client.get(f"{API}/users", headers=_as(admin)).json()
    assert [u["email"] for u in listed] == [SEED_ADMIN_EMAIL, "bruno@example.com"]

    removed = client.delete(f"{API}/users/{created.json()['id']}", headers=_as(admin))
    assert removed.status_code == 200
    assert len(storage.get_users()) == 1


def test_seed_admin_cannot_be_removed(client, admin, storage):
    response = client.delete(f"{API}/users/{SEED_ADMIN_ID}", headers=_as(admin))

    assert response.status_code == 403
    assert storage.get_user(SEED_ADMIN_ID) is not None


@pytest.mark.parametrize(
    "payload, message",
    [
        ({"title": "  ", "items": ["Óleo"]}, "Por favor, dê um título ao checklist."),
        ({"title": "Compressor", "items": ["", "   "]}, "Adicione pelo menos um item ao checklist."),
    ],
)
def test_template_validation(client, admin, storage, payload, message):
    response = client.post(f"{API}/templates", json=payload, headers=_as(admin))

    assert response.status_code == 400
    assert response.json()["error"]["message"] == message
    assert storage.get_templates() == []


def test_template_crud(client, admin, technician):
    template = _create_template(client, admin, items=("Brakes", "", "Lights"))

    assert [item["text"] for item in template["items"]] == ["Brakes", "Lights"]
    assert client.get(f"{API}/templates/{template['id']}", headers=_as(technician)).json()["title"] == "Forklift Check"
    assert len(client.get(f"{API}/templates", headers=_as(technician)).json()) == 1

    deleted = client.delete(f"{API}/templates/{template['id']}", headers=_as(admin))
    assert deleted.json() == {"deleted": template["id"]}
    missing = client.get(f"{API}/templates/{template['id']}", headers=_as(technician))
    assert missing.status_code == 404
    assert missing.json()["error"]["message"] == "Checklist não encontrado."


def test_full_inspection_produces_shareable_report(client, admin, technician, assistant):
    template = _create_template(client, admin)

    state = _run_inspection(client, technician, template["id"], ["ok"])
    assert state["phase"] == "IN_PROGRESS"
    assert (state["step"], state["total_steps"]) == (2, 2)
    assert state["report"] is None

    state = _run_inspection_answer(client, technician, state["session_id"], "ok")
    assert state["phase"] == "COMPLETED"
    report = state["report"]
    assert report["status"] == "COMPLETED"
    assert report["technician_name"] == "Ana"
    assert len(report["chat_history"]) == 4
    assert len(state["messages"]) == 6
    assert len(assistant.summary_calls) == 1

    reports = client.get(f"{API}/reports", headers=_as(admin)).json()
    assert [r["id"] for r in reports] == [report["id"]]
    assert client.get(f"{API}/reports", params={"search": "ana"}, headers=_as(admin)).json()[0]["id"] == report["id"]
    assert client.get(f"{API}/reports", params={"search": "zzz"}, headers=_as(admin)).json() == []

    share = client.get(f"{API}/reports/{report['id']}/share", headers=_as(technician)).json()
    assert share["text"].startswith("🛠️ *RELATÓRIO DE MANUTENÇÃO*")
    assert unquote(share["url"].split("?text=", 1)[1]) == share["text"]

    pdf = client.get(f"{API}/reports/{report['id']}/pdf", headers=_as(technician))
    assert pdf.status_code == 200
    assert pdf.headers["content-type"] == "application/pdf"
    assert "relatorio_Forklift_Check_" in pdf.headers["content-disposition"]
    assert pdf.content.startswith(b"%PDF")

    dashboard = client.get(f"{API}/dashboard", headers=_as(technician)).json()
    assert dashboard == {"templates": 1, "reports": 1, "role": "TECNICO"}

    gone = client.get(f"{API}/inspections/{state['session_id']}", headers=_as(technician))
    assert gone.status_code == 404


def test_blank_answer_is_rejected(client, admin, technician):
    template = _create_template(client, admin)
    state = _run_inspection(client, technician, template["id"], [])

    response = client.post(
        f"{API}/inspections/{state['session_id']}/answers",
        json={"text": "  "},
        headers=_as(technician),
    )

    assert response.status_code == 400
    assert response.json()["error"]["message"] == "Digite sua resposta."


def test_starting_unknown_template_is_not_found(client, technician):
    response = client.post(f"{API}/inspections", json={"template_id": "missing"}, headers=_as(technician))

    assert response.status_code == 404


def test_cancelled_inspection_leaves_no_report(client, admin, technician, storage, registry):
    template = _create_template(client, admin)
    state = _run_inspection(client, technician, template["id"], ["ok"])

    response = client.delete(f"{API}/inspections/{state['session_id']}", headers=_as(technician))

    assert response.json() == {"cancelled": state["session_id"]}
    assert len(registry) == 0
    assert storage.get_reports() == []


def test_sessions_are_private_to_their_technician(client, admin, technician):
    template = _create_template(client, admin)
    state = _run_inspection(client, technician, template["id"], [])

    response = client.get(f"{API}/inspections/{state['session_id']}", headers=_as(admin))

    assert response.status_code == 404
    assert response.json()["error"]["message"] == "Sessão de inspeção não encontrada."


def test_report_deletion_is_admin_only_and_idempotent(client, admin, technician, storage):
    template = _create_template(client, admin)
    report = _run_inspection(client, technician, template["id"], ["ok", "ok"])["report"]

    assert client.delete(f"{API}/reports/{report['id']}", headers=_as(technician)).status_code == 403
    assert client.delete(f"{API}/reports/{report['id']}", headers=_as(admin)).status_code == 200
    assert storage.get_reports() == []
    assert client.delete(f"{API}/reports/{report['id']}", headers=_as(admin)).status_code == 200
    missing = client.get(f"{API}/reports/{report['id']}", headers=_as(admin))
    assert missing.status_code == 404
    assert missing.json()["error"]["message"] == "Relatório não encontrado."


def test_pdf_failure_returns_error_message(client, admin, technician, monkeypatch):
    template = _create_template(client, admin)
    report = _run_inspection(client, technician, template["id"], ["ok", "ok"])["report"]

    def explode(report):
        raise OSError("disk full")

    monkeypatch.setattr("services.report_service.render_report_pdf", explode)
    response = client.get(f"{API}/reports/{report['id']}/pdf", headers=_as(technician))

    assert response.status_code == 500
    assert response.json()["error"]["message"] == "Erro ao gerar PDF. Tente novamente."


@pytest.mark.parametrize("module", ["auth_routes", "inspection_routes", "report_routes", "template_routes"])
def test_route_modules_are_documented(module):
    assert importlib.import_module(f"routes.{module}").__doc__

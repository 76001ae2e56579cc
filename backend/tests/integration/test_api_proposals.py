"""Integration tests for the proposal lifecycle API."""
import pytest

BASE = "/api/v1/proposals"


def _payload(call_id: str, **overrides) -> dict:
    data = {
        "call_id": call_id,
        "title": "Marine plastics survey",
        "abstract": "Quantifying microplastics along coastal transects",
        "budget": 20_000,
        "document_ref": "documents/seed/proposal.pdf",
    }
    data.update(overrides)
    return data


async def _create(client, headers, call_id, **overrides) -> dict:
    response = await client.post(f"{BASE}/", json=_payload(call_id, **overrides), headers=headers)
    assert response.status_code == 201, response.text
    return response.json()["data"]


async def _transition(client, headers, proposal_id, **body):
    return await client.post(f"{BASE}/{proposal_id}/transitions", json=body, headers=headers)


class TestProposalAPI:
    """제안서 API 통합 테스트."""

    @pytest.mark.asyncio
    async def test_requires_actor_headers(self, clean_client):
        response = await clean_client.get(f"{BASE}/")
        assert response.status_code == 401
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "AUTH_004"
        assert response.headers["X-Request-ID"] == body["request_id"]

    @pytest.mark.asyncio
    async def test_rejects_unknown_role(self, clean_client):
        response = await clean_client.get(
            f"{BASE}/", headers={"X-Actor-Id": "x", "X-Actor-Role": "REVIEWER"}
        )
        assert response.status_code == 401
        error = response.json()["error"]
        assert error["code"] == "AUTH_004"
        assert error["details"] == {"role": "REVIEWER"}

    @pytest.mark.asyncio
    async def test_create_and_get(self, clean_client, open_call, researcher, headers_for):
        headers = headers_for(researcher)
        created = await _create(clean_client, headers, open_call.id)

        assert created["status"] == "DRAFT"
        assert created["researcher_id"] == researcher.id

        response = await clean_client.get(f"{BASE}/{created['id']}", headers=headers)
        assert response.status_code == 200
        body = response.json()
        assert body["success"] is True
        assert body["data"]["revisions"] == []
        assert response.headers["X-Request-ID"] == body["request_id"]

    @pytest.mark.asyncio
    async def test_full_review_flow(self, clean_client, open_call, researcher, admin, headers_for):
        owner, reviewer = headers_for(researcher), headers_for(admin)
        proposal = await _create(clean_client, owner, open_call.id)
        pid = proposal["id"]

        response = await _transition(clean_client, owner, pid, to="SUBMITTED", expected_version=1)
        assert response.status_code == 200
        assert response.json()["data"]["version"] == 2

        response = await _transition(clean_client, reviewer, pid, to="UNDER_REVIEW", expected_status="SUBMITTED")
        assert response.json()["data"]["status"] == "UNDER_REVIEW"

        response = await _transition(
            clean_client, reviewer, pid, to="REVISIONS_REQUESTED", revision_requirements="Add a timeline"
        )
        assert response.json()["data"]["revision_requirements"] == "Add a timeline"

        response = await clean_client.post(
            f"{BASE}/{pid}/revisions",
            json={"changes": "Added Gantt chart"},
            headers=owner,
        )
        assert response.status_code == 200
        assert response.json()["data"]["status"] == "UNDER_REVIEW"

        response = await _transition(clean_client, reviewer, pid, to="ACCEPTED")
        assert response.json()["data"]["status"] == "ACCEPTED"

        revisions = (await clean_client.get(f"{BASE}/{pid}/revisions", headers=owner)).json()["data"]
        assert [r["changes"] for r in revisions] == ["Added Gantt chart"]

        history = (await clean_client.get(f"{BASE}/{pid}/history", headers=reviewer)).json()["data"]
        assert [h["to_status"] for h in history] == [
            "DRAFT", "SUBMITTED", "UNDER_REVIEW", "REVISIONS_REQUESTED", "UNDER_REVIEW", "ACCEPTED",
        ]

    @pytest.mark.asyncio
    async def test_revision_through_transitions(self, clean_client, open_call, researcher, admin, headers_for):
        """REVISIONS_REQUESTED → UNDER_REVIEW via the generic transition endpoint."""
        owner, reviewer = headers_for(researcher), headers_for(admin)
        pid = (await _create(clean_client, owner, open_call.id))["id"]
        await _transition(clean_client, owner, pid, to="SUBMITTED")
        await _transition(clean_client, reviewer, pid, to="UNDER_REVIEW")
        await _transition(clean_client, reviewer, pid, to="REVISIONS_REQUESTED", revision_requirements="Cut costs")

        response = await _transition(clean_client, owner, pid, to="UNDER_REVIEW", changes="  ")
        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_001"

        response = await _transition(clean_client, reviewer, pid, to="UNDER_REVIEW", changes="Admin edit")
        assert response.status_code == 403

        response = await _transition(
            clean_client, owner, pid, to="UNDER_REVIEW", changes="Trimmed travel budget",
            document_ref="documents/0003/v2.pdf",
        )
        assert response.status_code == 200
        assert response.json()["data"]["document_ref"] == "documents/0003/v2.pdf"

        revisions = (await clean_client.get(f"{BASE}/{pid}/revisions", headers=owner)).json()["data"]
        assert [r["changes"] for r in revisions] == ["Trimmed travel budget"]

    @pytest.mark.asyncio
    async def test_forbidden_response(self, clean_client, open_call, researcher, other_researcher, headers_for):
        proposal = await _create(clean_client, headers_for(researcher), open_call.id)

        response = await _transition(clean_client, headers_for(other_researcher), proposal["id"], to="SUBMITTED")

        assert response.status_code == 403
        body = response.json()
        assert body["success"] is False
        assert body["error"]["code"] == "AUTH_006"
        assert body["error"]["details"] == {}

    @pytest.mark.asyncio
    async def test_invalid_transition_response(self, clean_client, open_call, researcher, admin, headers_for):
        proposal = await _create(clean_client, headers_for(researcher), open_call.id)

        response = await _transition(clean_client, headers_for(admin), proposal["id"], to="ACCEPTED")

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "LIFECYCLE_002"
        assert error["details"]["allowed"] == ["SUBMITTED"]

    @pytest.mark.asyncio
    async def test_edit_after_submission_response(self, clean_client, open_call, researcher, headers_for):
        headers = headers_for(researcher)
        proposal = await _create(clean_client, headers, open_call.id)
        await _transition(clean_client, headers, proposal["id"], to="SUBMITTED")

        response = await clean_client.put(
            f"{BASE}/{proposal['id']}",
            params={"expected_version": 1},
            json={"title": "Late edit"},
            headers=headers,
        )

        # No longer a draft, so the version is never compared
        assert response.status_code == 409
        assert response.json()["error"]["code"] == "LIFECYCLE_003"

    @pytest.mark.asyncio
    async def test_stale_version_on_transition(self, clean_client, open_call, researcher, headers_for):
        headers = headers_for(researcher)
        proposal = await _create(clean_client, headers, open_call.id)
        await clean_client.put(f"{BASE}/{proposal['id']}", json={"title": "Edited"}, headers=headers)

        response = await _transition(clean_client, headers, proposal["id"], to="SUBMITTED", expected_version=1)

        assert response.status_code == 409
        error = response.json()["error"]
        assert error["code"] == "LIFECYCLE_001"
        assert error["details"]["current_version"] == 2

    @pytest.mark.asyncio
    async def test_validation_error_response(self, clean_client, open_call, researcher, headers_for):
        headers = headers_for(researcher)
        proposal = await _create(clean_client, headers, open_call.id, document_ref=None)

        response = await _transition(clean_client, headers, proposal["id"], to="SUBMITTED")

        assert response.status_code == 422
        error = response.json()["error"]
        assert error["code"] == "VALIDATION_001"
        assert error["details"]["reason"] == "document_missing"

    @pytest.mark.asyncio
    async def test_delete_draft(self, clean_client, open_call, researcher, headers_for):
        headers = headers_for(researcher)
        proposal = await _create(clean_client, headers, open_call.id)

        response = await clean_client.delete(f"{BASE}/{proposal['id']}", headers=headers)
        assert response.status_code == 200
        assert response.json()["data"]["deleted"] is True

        response = await clean_client.get(f"{BASE}/{proposal['id']}", headers=headers)
        assert response.status_code == 404

    @pytest.mark.asyncio
    async def test_list_own_proposals(self, clean_client, open_call, researcher, other_researcher, headers_for):
        await _create(clean_client, headers_for(researcher), open_call.id)
        await _create(clean_client, headers_for(other_researcher), open_call.id)

        response = await clean_client.get(f"{BASE}/", headers=headers_for(researcher))

        data = response.json()["data"]
        assert data["total"] == 1
        assert data["proposals"][0]["researcher_id"] == researcher.id


class TestAdminAPI:
    """관리자 API 통합 테스트."""

    @pytest.mark.asyncio
    async def test_list_with_status_filter(self, clean_client, open_call, researcher, admin, headers_for):
        owner = headers_for(researcher)
        first = await _create(clean_client, owner, open_call.id)
        await _create(clean_client, owner, open_call.id)
        await _transition(clean_client, owner, first["id"], to="SUBMITTED")

        response = await clean_client.get(
            "/api/v1/admin/proposals", params={"status": "SUBMITTED"}, headers=headers_for(admin)
        )

        data = response.json()["data"]
        assert data["total"] == 1
        assert data["status"] == "SUBMITTED"
        assert data["proposals"][0]["id"] == first["id"]

    @pytest.mark.asyncio
    async def test_admin_list_requires_admin(self, clean_client, researcher, headers_for):
        response = await clean_client.get("/api/v1/admin/proposals", headers=headers_for(researcher))
        assert response.status_code == 403

    @pytest.mark.asyncio
    async def test_stats(self, clean_client, open_call, researcher, admin, headers_for):
        await _create(clean_client, headers_for(researcher), open_call.id)

        response = await clean_client.get("/api/v1/admin/stats", headers=headers_for(admin))

        assert response.status_code == 200
        stats = response.json()["data"]
        assert stats["proposals_count"] == 1
        assert stats["calls_count"] == 1
        assert stats["by_status"]["DRAFT"] == 1
        assert stats["by_status"]["REJECTED"] == 0


class TestDocumentsAPI:
    """문서 업로드 API 통합 테스트."""

    @pytest.mark.asyncio
    async def test_upload(self, clean_client, researcher, headers_for, tmp_path):
        response = await clean_client.post(
            "/api/v1/documents",
            files={"file": ("plan.pdf", b"%PDF-1.7", "application/pdf")},
            headers=headers_for(researcher),
        )

        assert response.status_code == 201
        reference = response.json()["data"]["document_ref"]
        assert (tmp_path / reference).read_bytes() == b"%PDF-1.7"

    @pytest.mark.asyncio
    async def test_upload_rejects_type(self, clean_client, researcher, headers_for):
        response = await clean_client.post(
            "/api/v1/documents",
            files={"file": ("notes.txt", b"hello", "text/plain")},
            headers=headers_for(researcher),
        )

        assert response.status_code == 422
        assert response.json()["error"]["code"] == "VALIDATION_001"


class TestHealth:
    @pytest.mark.asyncio
    async def test_health(self, clean_client):
        response = await clean_client.get("/health")
        assert response.status_code == 200
        assert response.json()["status"] == "healthy"

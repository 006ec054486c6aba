"""Shelf sharing tests."""

from unittest.mock import patch

import pytest
from sqlalchemy.exc import IntegrityError, SQLAlchemyError

from src.models.alcohol import Alcohol
from src.models.collection_entry import CollectionEntry
from src.models.enums import ShareErrorReason, ShareStatus
from src.models.shelf_share import ShelfShare
from src.services.collection_service import CollectionError
from src.services.share_service import (
    INVITE_CODE_ALPHABET,
    INVITE_CODE_LENGTH,
    MAX_CODE_ATTEMPTS,
    ShareService,
    generate_invite_code,
)


def test_invite_code_format():
    """Test codes are 8 characters from the unambiguous alphabet."""
    for _ in range(50):
        code = generate_invite_code()
        assert len(code) == INVITE_CODE_LENGTH
        assert set(code) <= set(INVITE_CODE_ALPHABET)
    assert not set("0O1Iilo") & set(INVITE_CODE_ALPHABET)


def test_get_invite_is_idempotent(client, auth_headers):
    """Test repeated invite requests return the same open code."""
    first = client.post("/api/v1/shares/invite", headers=auth_headers)
    second = client.post("/api/v1/shares/invite", headers=auth_headers)
    assert first.status_code == 200
    assert first.json()["code"] == second.json()["code"]


def test_regenerate_invite_replaces_code(client, db, auth_headers):
    """Test regenerating leaves exactly one open invite with a new code."""
    old_code = client.post("/api/v1/shares/invite", headers=auth_headers).json()["code"]

    response = client.post("/api/v1/shares/invite/regenerate", headers=auth_headers)
    assert response.status_code == 200
    new_code = response.json()["code"]
    assert new_code != old_code

    open_invites = (
        db.query(ShelfShare)
        .filter(
            ShelfShare.owner_id == auth_headers.user_id,
            ShelfShare.status == ShareStatus.PENDING.value,
            ShelfShare.shared_with_id.is_(None),
        )
        .all()
    )
    assert [share.invite_code for share in open_invites] == [new_code]


def test_old_code_not_found_after_regenerate(client, auth_headers, friend_headers):
    """Test a revoked code can no longer be used."""
    old_code = client.post("/api/v1/shares/invite", headers=auth_headers).json()["code"]
    client.post("/api/v1/shares/invite/regenerate", headers=auth_headers)

    response = client.post(
        "/api/v1/shares/join", headers=friend_headers, json={"code": old_code}
    )
    assert response.status_code == 404
    assert response.json()["detail"]["reason"] == "not_found"


def test_invite_generation_retries_on_collision(db, auth_headers, friend_headers):
    """Test a colliding code is retried with a fresh one."""
    taken = ShelfShare(
        owner_id=friend_headers.user_id, invite_code="TAKENxx2", status=ShareStatus.PENDING.value
    )
    db.add(taken)
    db.commit()

    service = ShareService(db)
    with patch(
        "src.services.share_service.generate_invite_code", side_effect=["TAKENxx2", "FRESHxx3"]
    ):
        result = service.get_or_create_invite(auth_headers.user_id)

    assert result == {"code": "FRESHxx3"}


def test_invite_generation_gives_up(db, auth_headers, friend_headers):
    """Test generation fails after the bounded number of attempts."""
    db.add(
        ShelfShare(
            owner_id=friend_headers.user_id,
            invite_code="TAKENxx2",
            status=ShareStatus.PENDING.value,
        )
    )
    db.commit()

    service = ShareService(db)
    with patch(
        "src.services.share_service.generate_invite_code", return_value="TAKENxx2"
    ) as mock_generate:
        result = service.get_or_create_invite(auth_headers.user_id)

    assert result["reason"] == ShareErrorReason.GENERATION_FAILED
    assert mock_generate.call_count == MAX_CODE_ATTEMPTS


def test_second_open_invite_rejected_by_index(db, auth_headers):
    """Test the store refuses two open invites for one owner."""
    db.add(ShelfShare(owner_id=auth_headers.user_id, invite_code="AAAAaaa2"))
    db.commit()

    db.add(ShelfShare(owner_id=auth_headers.user_id, invite_code="BBBBbbb3"))
    with pytest.raises(IntegrityError):
        db.commit()
    db.rollback()


def test_join_by_code(client, auth_headers, friend_headers):
    """Test joining makes both users friends."""
    code = client.post("/api/v1/shares/invite", headers=auth_headers).json()["code"]

    response = client.post("/api/v1/shares/join", headers=friend_headers, json={"code": code})
    assert response.status_code == 200
    assert response.json()["success"] is True

    owner_view = client.get("/api/v1/shares", headers=auth_headers).json()
    joiner_view = client.get("/api/v1/shares", headers=friend_headers).json()

    assert [f["id"] for f in owner_view["friends"]] == [friend_headers.user_id]
    assert owner_view["friends"][0]["display_name"] == "Friend"
    assert [f["id"] for f in joiner_view["friends"]] == [auth_headers.user_id]
    assert joiner_view["friends"][0]["display_name"] == "Test User"
    # The used code is no longer the owner's open invite
    assert owner_view["current_invite"] is None


def test_join_code_is_trimmed(client, auth_headers, friend_headers):
    """Test surrounding whitespace in a pasted code is ignored."""
    code = client.post("/api/v1/shares/invite", headers=auth_headers).json()["code"]
    response = client.post(
        "/api/v1/shares/join", headers=friend_headers, json={"code": f" {code} "}
    )
    assert response.status_code == 200


def test_join_unknown_code(client, friend_headers):
    """Test an unknown code is reported as not found."""
    response = client.post("/api/v1/shares/join", headers=friend_headers, json={"code": "NOPExxx2"})
    assert response.status_code == 404
    assert response.json()["detail"]["reason"] == "not_found"


def test_join_own_code(client, auth_headers):
    """Test a user cannot join their own shelf."""
    code = client.post("/api/v1/shares/invite", headers=auth_headers).json()["code"]
    response = client.post("/api/v1/shares/join", headers=auth_headers, json={"code": code})
    assert response.status_code == 400
    assert response.json()["detail"]["reason"] == "self_invite"


def test_join_used_code(client, auth_headers, friend_headers, stranger_headers):
    """Test a code can only be used once."""
    code = client.post("/api/v1/shares/invite", headers=auth_headers).json()["code"]
    client.post("/api/v1/shares/join", headers=friend_headers, json={"code": code})

    response = client.post("/api/v1/shares/join", headers=stranger_headers, json={"code": code})
    assert response.status_code == 409
    assert response.json()["detail"]["reason"] == "already_used"


def test_join_processed_code(client, db, auth_headers, friend_headers):
    """Test a rejected invite cannot be joined."""
    db.add(
        ShelfShare(
            owner_id=auth_headers.user_id,
            invite_code="REJxxxx2",
            status=ShareStatus.REJECTED.value,
        )
    )
    db.commit()

    response = client.post("/api/v1/shares/join", headers=friend_headers, json={"code": "REJxxxx2"})
    assert response.status_code == 400
    assert response.json()["detail"]["reason"] == "already_processed"


def test_join_already_friends(client, auth_headers, friend_headers, make_friends):
    """Test joining again in the reverse direction is refused."""
    make_friends(auth_headers, friend_headers)

    code = client.post("/api/v1/shares/invite", headers=friend_headers).json()["code"]
    response = client.post("/api/v1/shares/join", headers=auth_headers, json={"code": code})
    assert response.status_code == 409
    assert response.json()["detail"]["reason"] == "already_friends"


def test_join_empty_code_rejected(client, friend_headers):
    """Test request validation on the code."""
    response = client.post("/api/v1/shares/join", headers=friend_headers, json={"code": ""})
    assert response.status_code == 422


def test_concurrent_accept_only_one_wins(db, auth_headers, friend_headers, stranger_headers):
    """Test two users racing for one code: exactly one succeeds."""
    code = ShareService(db).get_or_create_invite(auth_headers.user_id)["code"]

    racer = ShareService(db)
    winner = ShareService(db)
    results = {}

    def accept_first(*args):
        # The stranger accepts between the loser's checks and its guarded update
        results["stranger"] = winner.join_by_code(code, stranger_headers.user_id)
        return None

    with patch.object(racer, "_find_accepted_between", side_effect=accept_first):
        results["friend"] = racer.join_by_code(code, friend_headers.user_id)

    assert results["stranger"]["success"] is True
    assert results["friend"]["reason"] == ShareErrorReason.ALREADY_USED

    share = db.query(ShelfShare).filter(ShelfShare.invite_code == code).one()
    assert share.shared_with_id == stranger_headers.user_id
    assert share.status == ShareStatus.ACCEPTED.value
    assert share.accepted_at is not None


def test_join_database_failure_is_not_reported_as_used(db, auth_headers, friend_headers):
    """Test a failed accept commit reports a join failure and keeps the invite open."""
    service = ShareService(db)
    code = service.get_or_create_invite(auth_headers.user_id)["code"]

    with patch.object(db, "commit", side_effect=SQLAlchemyError("down")):
        result = service.join_by_code(code, friend_headers.user_id)

    assert result["reason"] == ShareErrorReason.JOIN_FAILED
    share = db.query(ShelfShare).filter(ShelfShare.invite_code == code).one()
    assert share.is_open_invite

    assert service.join_by_code(code, friend_headers.user_id)["success"] is True


def test_join_database_failure_returns_500(client, db, auth_headers, friend_headers):
    """Test the API maps a failed accept to a server error."""
    code = client.post("/api/v1/shares/invite", headers=auth_headers).json()["code"]

    with patch.object(db, "commit", side_effect=SQLAlchemyError("down")):
        response = client.post("/api/v1/shares/join", headers=friend_headers, json={"code": code})

    assert response.status_code == 500
    assert response.json()["detail"]["reason"] == "join_failed"


def test_accepted_invite_keeps_code_for_reuse_errors(db, auth_headers, friend_headers):
    """Test an accepted row keeps its code so a second use reports already used."""
    service = ShareService(db)
    code = service.get_or_create_invite(auth_headers.user_id)["code"]
    assert service.join_by_code(code, friend_headers.user_id)["success"] is True

    share = db.query(ShelfShare).filter(ShelfShare.invite_code == code).one()
    assert share.status == ShareStatus.ACCEPTED.value
    assert not share.is_open_invite
    # The owner's next invite gets a fresh code
    assert service.get_or_create_invite(auth_headers.user_id)["code"] != code


def test_join_with_delete_collection(
    client, db, auth_headers, friend_headers, add_entry, photo_delay
):
    """Test the joiner's collection is purged and orphaned alcohols pruned."""
    shared = add_entry(auth_headers, "獺祭 純米大吟醸", 5)
    # The joiner reviews the owner's bottle and adds one of their own
    photo = "http://x/storage/photos/2/1.jpg"
    own = add_entry(friend_headers, "久保田 千寿", 3, photo_url=photo)

    code = client.post("/api/v1/shares/invite", headers=auth_headers).json()["code"]
    response = client.post(
        "/api/v1/shares/join",
        headers=friend_headers,
        json={"code": code, "delete_collection": True},
    )
    assert response.status_code == 200

    remaining = db.query(CollectionEntry).filter(
        CollectionEntry.user_id == friend_headers.user_id
    )
    assert remaining.count() == 0
    # The joiner's alcohol is orphaned and pruned; the owner's is kept
    assert db.query(Alcohol).filter(Alcohol.id == own["alcohol_id"]).first() is None
    assert db.query(Alcohol).filter(Alcohol.id == shared["alcohol_id"]).first() is not None
    photo_delay.assert_called_once_with(photo)


def test_join_keeps_shared_alcohol_when_pruning(db, auth_headers, friend_headers, add_entry):
    """Test pruning keeps alcohols still referenced by another user's entries."""
    owner_entry = add_entry(auth_headers, "十四代", 5)
    db.add(
        CollectionEntry(
            user_id=friend_headers.user_id, alcohol_id=owner_entry["alcohol_id"], rating=4
        )
    )
    db.commit()

    service = ShareService(db)
    code = service.get_or_create_invite(auth_headers.user_id)["code"]
    result = service.join_by_code(code, friend_headers.user_id, delete_collection=True)

    assert result["success"] is True
    assert db.query(Alcohol).filter(Alcohol.id == owner_entry["alcohol_id"]).first() is not None


def test_purge_failure_aborts_join(db, auth_headers, friend_headers):
    """Test a failed purge leaves the invite open."""
    service = ShareService(db)
    code = service.get_or_create_invite(auth_headers.user_id)["code"]

    with patch.object(
        service.collection_service,
        "delete_user_collection",
        side_effect=CollectionError("boom"),
    ):
        result = service.join_by_code(code, friend_headers.user_id, delete_collection=True)

    assert result["reason"] == ShareErrorReason.PURGE_FAILED
    share = db.query(ShelfShare).filter(ShelfShare.invite_code == code).one()
    assert share.is_open_invite


def test_join_purge_with_empty_collection(db, auth_headers, friend_headers):
    """Test purging an empty collection still joins and prunes nothing."""
    service = ShareService(db)
    code = service.get_or_create_invite(auth_headers.user_id)["code"]

    with patch.object(
        service.collection_service, "prune_orphan_alcohols", return_value=[]
    ) as mock_prune:
        result = service.join_by_code(code, friend_headers.user_id, delete_collection=True)

    assert result["success"] is True
    mock_prune.assert_called_once_with([])


def test_remove_friend_by_either_party(client, auth_headers, friend_headers, make_friends):
    """Test the joiner can dissolve the friendship too."""
    make_friends(auth_headers, friend_headers)
    share_id = client.get("/api/v1/shares", headers=friend_headers).json()["friends"][0]["share_id"]

    response = client.delete(f"/api/v1/shares/friends/{share_id}", headers=friend_headers)
    assert response.status_code == 204

    assert client.get("/api/v1/shares", headers=auth_headers).json()["friends"] == []


def test_remove_friend_not_party(
    client, auth_headers, friend_headers, stranger_headers, make_friends
):
    """Test an outsider cannot dissolve someone else's friendship."""
    make_friends(auth_headers, friend_headers)
    share_id = client.get("/api/v1/shares", headers=auth_headers).json()["friends"][0]["share_id"]

    response = client.delete(f"/api/v1/shares/friends/{share_id}", headers=stranger_headers)
    assert response.status_code == 404


def test_delete_invite(client, db, auth_headers, friend_headers):
    """Test an owner can delete their open invite; others cannot."""
    client.post("/api/v1/shares/invite", headers=auth_headers)
    share_id = client.get("/api/v1/shares", headers=auth_headers).json()["current_invite"]["id"]

    response = client.delete(f"/api/v1/shares/invite/{share_id}", headers=friend_headers)
    assert response.status_code == 404

    response = client.delete(f"/api/v1/shares/invite/{share_id}", headers=auth_headers)
    assert response.status_code == 204
    assert db.query(ShelfShare).count() == 0


def test_remove_friend_database_failure(client, db, auth_headers, friend_headers, make_friends):
    """Test a failed removal is reported and the friendship survives."""
    make_friends(auth_headers, friend_headers)
    share_id = client.get("/api/v1/shares", headers=auth_headers).json()["friends"][0]["share_id"]

    with patch.object(db, "commit", side_effect=SQLAlchemyError("down")):
        response = client.delete(f"/api/v1/shares/friends/{share_id}", headers=auth_headers)

    assert response.status_code == 500
    assert response.json()["detail"]["reason"] == "remove_failed"
    assert len(client.get("/api/v1/shares", headers=friend_headers).json()["friends"]) == 1


def test_delete_invite_database_failure(db, auth_headers):
    """Test a failed invite deletion rolls back and keeps the invite."""
    service = ShareService(db)
    service.get_or_create_invite(auth_headers.user_id)
    share_id = service.get_open_invite(auth_headers.user_id).id

    with patch.object(db, "commit", side_effect=SQLAlchemyError("down")):
        result = service.delete_invite(share_id, auth_headers.user_id)

    assert result["reason"] == ShareErrorReason.REMOVE_FAILED
    assert service.get_open_invite(auth_headers.user_id).id == share_id


def test_friend_list_ordered_by_acceptance(
    client, auth_headers, friend_headers, stranger_headers, make_friends
):
    """Test the most recently accepted friend comes first."""
    make_friends(auth_headers, friend_headers)
    make_friends(stranger_headers, auth_headers)

    friends = client.get("/api/v1/shares", headers=auth_headers).json()["friends"]
    assert [f["id"] for f in friends] == [stranger_headers.user_id, friend_headers.user_id]

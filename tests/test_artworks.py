"""
Tests for artwork endpoints and the like toggle.
"""
import io
import threading

import pytest
from sqlalchemy.orm import sessionmaker

from heartspace.database import Base, build_engine
from heartspace.errors import NotFoundError
from heartspace.models.artwork import Artwork, Comment, Like
from heartspace.models.user import User
from heartspace.services.toggle import RelationToggle, like_toggle

PNG_BYTES = b"\x89PNG\r\n\x1a\n" + b"\x00" * 64


@pytest.fixture
def artwork(db, test_user):
    art = Artwork(title="Sunrise", description="Morning colours", image_url="/media/abc.png", user_id=test_user.id)
    db.add(art)
    db.commit()
    db.refresh(art)
    return art


class TestArtworkEndpoints:
    """Test artwork upload, browsing and deletion."""

    def test_upload_artwork(self, client, test_user, auth_headers, db):
        response = client.post(
            "/api/artworks",
            headers=auth_headers,
            data={"title": "Calm", "description": "Blue on blue"},
            files={"image": ("calm.png", io.BytesIO(PNG_BYTES), "image/png")},
        )
        assert response.status_code == 201
        data = response.json()
        assert data["title"] == "Calm"
        assert data["user"] == {"id": test_user.id, "name": "Test User"}
        assert data["imageUrl"].startswith("/media/")
        assert data["imageUrl"].endswith(".png")
        assert data["likes"] == []
        assert db.query(Artwork).count() == 1

    def test_identical_uploads_share_object(self, client, auth_headers):
        urls = [
            client.post(
                "/api/artworks",
                headers=auth_headers,
                data={"title": f"Copy {i}"},
                files={"image": ("same.png", io.BytesIO(PNG_BYTES), "image/png")},
            ).json()["imageUrl"]
            for i in range(2)
        ]
        assert urls[0] == urls[1]

    def test_upload_requires_image(self, client, auth_headers, db):
        response = client.post("/api/artworks", headers=auth_headers, data={"title": "No image"})
        assert response.status_code == 400
        assert response.json()["error"] == "Image is required"
        assert db.query(Artwork).count() == 0

    def test_upload_requires_auth(self, client, db):
        response = client.post(
            "/api/artworks",
            files={"image": ("calm.png", io.BytesIO(PNG_BYTES), "image/png")},
        )
        assert response.status_code == 401

    def test_list_and_get(self, client, artwork):
        response = client.get("/api/artworks")
        assert response.status_code == 200
        assert [a["id"] for a in response.json()] == [artwork.id]

        response = client.get(f"/api/artworks/{artwork.id}")
        assert response.status_code == 200
        assert response.json()["title"] == "Sunrise"

    def test_get_missing(self, client, db):
        assert client.get("/api/artworks/9999").status_code == 404

    def test_out_of_range_ids_are_not_found(self, client, auth_headers):
        huge = "99999999999999999999"
        responses = [
            client.get(f"/api/artworks/{huge}"),
            client.post(f"/api/artworks/{huge}/like", headers=auth_headers),
            client.post(f"/api/artworks/{huge}/comments", headers=auth_headers, json={"content": "Hi"}),
            client.delete(f"/api/artworks/{huge}", headers=auth_headers),
        ]
        for response in responses:
            assert response.status_code == 404
            assert response.json()["error"] == "Artwork not found"

    def test_comment(self, client, artwork, other_user, other_headers):
        response = client.post(
            f"/api/artworks/{artwork.id}/comments",
            headers=other_headers,
            json={"content": "Lovely"},
        )
        assert response.status_code == 201
        assert response.json()["user"]["id"] == other_user.id

        comments = client.get(f"/api/artworks/{artwork.id}").json()["comments"]
        assert [c["content"] for c in comments] == ["Lovely"]

    def test_comment_requires_content(self, client, artwork, auth_headers):
        response = client.post(f"/api/artworks/{artwork.id}/comments", headers=auth_headers, json={"content": "  "})
        assert response.status_code == 400

    def test_comment_on_missing_artwork(self, client, auth_headers):
        response = client.post("/api/artworks/9999/comments", headers=auth_headers, json={"content": "Hi"})
        assert response.status_code == 404

    def test_delete_own_artwork(self, client, artwork, auth_headers, other_headers, db):
        client.post(f"/api/artworks/{artwork.id}/like", headers=other_headers)
        client.post(f"/api/artworks/{artwork.id}/comments", headers=other_headers, json={"content": "Nice"})
        artwork_id = artwork.id

        response = client.delete(f"/api/artworks/{artwork_id}", headers=auth_headers)
        assert response.status_code == 200
        assert client.get(f"/api/artworks/{artwork_id}").status_code == 404
        assert db.query(Like).filter_by(artwork_id=artwork_id).count() == 0
        assert db.query(Comment).filter_by(artwork_id=artwork_id).count() == 0

    def test_delete_someone_elses_artwork(self, client, artwork, other_headers):
        response = client.delete(f"/api/artworks/{artwork.id}", headers=other_headers)
        assert response.status_code == 403
        assert client.get(f"/api/artworks/{artwork.id}").status_code == 200


class TestLikeToggle:
    """Likes flip on each call and never duplicate."""

    def test_like_then_unlike(self, client, artwork, other_user, other_headers, db):
        response = client.post(f"/api/artworks/{artwork.id}/like", headers=other_headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Liked", "liked": True}
        assert db.query(Like).filter_by(user_id=other_user.id, artwork_id=artwork.id).count() == 1

        response = client.post(f"/api/artworks/{artwork.id}/like", headers=other_headers)
        assert response.status_code == 200
        assert response.json() == {"message": "Unliked", "liked": False}
        assert db.query(Like).filter_by(user_id=other_user.id, artwork_id=artwork.id).count() == 0

    def test_likes_are_per_user(self, client, artwork, auth_headers, other_headers):
        client.post(f"/api/artworks/{artwork.id}/like", headers=auth_headers)
        client.post(f"/api/artworks/{artwork.id}/like", headers=other_headers)

        assert client.get(f"/api/artworks/{artwork.id}").json()["likeCount"] == 2

    def test_like_missing_artwork(self, client, auth_headers):
        response = client.post("/api/artworks/9999/like", headers=auth_headers)
        assert response.status_code == 404

    def test_like_requires_auth(self, client, artwork):
        assert client.post(f"/api/artworks/{artwork.id}/like").status_code == 401

    def test_double_toggle_restores_state(self, db, artwork, other_user):
        toggle = RelationToggle(Like, "user_id", "artwork_id", Artwork, "Artwork")
        before = toggle.exists(db, other_user.id, artwork.id)

        toggle.toggle(db, other_user.id, artwork.id)
        toggle.toggle(db, other_user.id, artwork.id)

        assert toggle.exists(db, other_user.id, artwork.id) == before

    def test_insert_losing_race_becomes_unlike(self, db, artwork, other_user, monkeypatch):
        """A unique violation on insert is read as 'already liked' and removed."""
        user_id, artwork_id = other_user.id, artwork.id
        db.add(Like(user_id=user_id, artwork_id=artwork_id))
        db.commit()

        toggle = RelationToggle(Like, "user_id", "artwork_id", Artwork, "Artwork")
        real_delete = toggle._delete
        calls = []

        def stale_delete(session, actor_id, target_id):
            # The first lookup misses the row a concurrent request just wrote
            calls.append(actor_id)
            if len(calls) == 1:
                return 0
            return real_delete(session, actor_id, target_id)

        monkeypatch.setattr(toggle, "_delete", stale_delete)

        assert toggle.toggle(db, user_id, artwork_id) is False
        assert len(calls) == 2
        assert db.query(Like).filter_by(user_id=user_id, artwork_id=artwork_id).count() == 0

    def test_toggle_missing_target(self, db, other_user):
        toggle = RelationToggle(Like, "user_id", "artwork_id", Artwork, "Artwork")
        with pytest.raises(NotFoundError):
            toggle.toggle(db, other_user.id, 9999)


class TestConcurrentToggles:
    """Like toggles racing from separate connections against a file-backed database."""

    @pytest.fixture
    def file_db(self, tmp_path):
        engine = build_engine(f"sqlite:///{tmp_path / 'likes.db'}")
        Base.metadata.create_all(bind=engine)
        factory = sessionmaker(autocommit=False, autoflush=False, bind=engine)
        yield factory
        engine.dispose()

    def _seed(self, factory):
        with factory() as db:
            owner = User(email="owner@example.com", hashed_password="x", display_name="Owner")
            fan = User(email="fan@example.com", hashed_password="x", display_name="Fan")
            db.add_all([owner, fan])
            db.flush()
            art = Artwork(title="Tide", image_url="/media/tide.png", user_id=owner.id)
            db.add(art)
            db.commit()
            return fan.id, art.id

    def _race(self, factory, user_id, artwork_id, toggles):
        barrier = threading.Barrier(toggles)
        outcomes = []
        lock = threading.Lock()

        def worker():
            barrier.wait()
            db = factory()
            try:
                result = like_toggle.toggle(db, user_id, artwork_id)
            finally:
                db.close()
            with lock:
                outcomes.append(result)

        threads = [threading.Thread(target=worker) for _ in range(toggles)]
        for t in threads:
            t.start()
        for t in threads:
            t.join(timeout=60)
        return outcomes

    def _like_rows(self, factory, user_id, artwork_id):
        with factory() as db:
            return db.query(Like).filter_by(user_id=user_id, artwork_id=artwork_id).count()

    def test_two_toggles_cancel_out(self, file_db):
        """One call likes, the other unlikes; no row and no duplicate remain."""
        user_id, artwork_id = self._seed(file_db)

        outcomes = self._race(file_db, user_id, artwork_id, toggles=2)

        assert sorted(outcomes) == [False, True]
        assert self._like_rows(file_db, user_id, artwork_id) == 0

    def test_odd_number_of_toggles_leaves_one_like(self, file_db):
        user_id, artwork_id = self._seed(file_db)

        outcomes = self._race(file_db, user_id, artwork_id, toggles=5)

        assert len(outcomes) == 5
        assert outcomes.count(True) == 3
        assert outcomes.count(False) == 2
        assert self._like_rows(file_db, user_id, artwork_id) == 1

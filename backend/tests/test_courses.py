from fastapi.testclient import TestClient

from course_library.main import app

anonymous = TestClient(app)


def test_create_course_as_professor(professor):
    c, user = professor
    r = c.post('/courses', json={'title': '  Databases ', 'description': 'SQL', 'category': 'CS'})
    assert r.status_code == 200
    body = r.json()
    assert body['title'] == 'Databases'
    assert body['ownerId'] == user['id']
    assert {'id', 'title', 'description', 'category', 'createdAt', 'ownerId'} == set(body)


def test_student_cannot_create_course_even_with_invalid_body(student):
    c, _ = student
    for body in ({}, {'title': ''}, {'title': 'ok', 'description': 'ok', 'category': 'ok'}, [1, 2]):
        r = c.post('/courses', json=body)
        assert r.status_code == 403
        assert r.json() == {'message': 'Only professors can create courses'}
    assert c.post('/courses', content=b'{broken', headers={'content-type': 'application/json'}).status_code == 403


def test_create_course_requires_session():
    r = anonymous.post('/courses', json={'title': 't', 'description': 'd', 'category': 'c'})
    assert r.status_code == 401


def test_create_course_validates_fields(professor):
    c, _ = professor
    assert c.post('/courses', json={'title': 'T', 'description': ' ', 'category': 'C'}).status_code == 400
    assert c.post('/courses', json={'title': 'T', 'description': 'D'}).status_code == 400
    assert c.post('/courses', json={'title': 5, 'description': 'D', 'category': 'C'}).status_code == 400


def test_get_course_detail_is_public(course, professor):
    _, user = professor
    r = anonymous.get(f"/courses/{course['id']}")
    assert r.status_code == 200
    body = r.json()
    assert body['owner'] == {'id': user['id'], 'name': 'Prof'}
    assert body['resources'] == []
    assert body['comments'] == []


def test_missing_course_is_not_found():
    assert anonymous.get('/courses/999').status_code == 404
    assert anonymous.get('/courses/999').json() == {'message': 'Course not found'}
    assert anonymous.get('/courses/not-a-number').status_code == 404


def test_update_course_partial(course, professor):
    c, _ = professor
    r = c.put(f"/courses/{course['id']}", json={'category': 'Frontend'})
    assert r.status_code == 200
    body = r.json()
    assert body['category'] == 'Frontend'
    assert body['title'] == course['title']
    assert body['description'] == course['description']


def test_update_course_rejects_blank_or_null_fields(course, professor):
    c, _ = professor
    assert c.put(f"/courses/{course['id']}", json={'title': '  '}).status_code == 400
    assert c.put(f"/courses/{course['id']}", json={'description': None}).status_code == 400
    assert anonymous.get(f"/courses/{course['id']}").json()['title'] == 'Web Basics'


def test_update_course_cannot_change_owner(course, professor, login_as):
    c, user = professor
    _, other = login_as('other-prof@example.com', role='PROFESSOR')
    r = c.put(f"/courses/{course['id']}", json={'ownerId': other['id'], 'owner_id': other['id'], 'title': 'x'})
    assert r.status_code == 200
    assert r.json()['ownerId'] == user['id']
    assert r.json()['title'] == 'x'
    body = anonymous.get(f"/courses/{course['id']}").json()
    assert body['ownerId'] == user['id']
    assert body['owner']['id'] == user['id']


def test_non_owner_cannot_update_or_delete(course, login_as, student):
    other, _ = login_as('other-prof@example.com', role='PROFESSOR')
    for c, _ in ((other, None), student):
        for body in ({'title': 'Hijacked'}, {'title': ''}, None):
            r = c.put(f"/courses/{course['id']}", json=body)
            assert r.status_code == 403
            assert r.json() == {'message': 'You do not have access to this course'}
        assert c.delete(f"/courses/{course['id']}").status_code == 403
    assert anonymous.get(f"/courses/{course['id']}").json()['title'] == 'Web Basics'


def test_existence_is_checked_before_ownership(student):
    c, _ = student
    assert c.put('/courses/999', json={'title': 'x'}).status_code == 404
    assert c.delete('/courses/999').status_code == 404
    assert c.post('/courses/999/resources', json={}).status_code == 404
    assert c.delete('/resources/999').status_code == 404
    assert c.delete('/comments/999').status_code == 404


def test_mutations_require_session(course):
    cid = course['id']
    assert anonymous.put(f'/courses/{cid}', json={'title': 'x'}).status_code == 401
    assert anonymous.delete(f'/courses/{cid}').status_code == 401
    assert anonymous.post(f'/courses/{cid}/resources', json={}).status_code == 401
    assert anonymous.post(f'/courses/{cid}/comments', json={'content': 'hi'}).status_code == 401
    assert anonymous.delete('/resources/1').status_code == 401
    assert anonymous.delete('/comments/1').status_code == 401


def test_add_resource(course, professor):
    c, _ = professor
    r = c.post(f"/courses/{course['id']}/resources", json={'title': 'Slides', 'url': 'https://example.com/s.pdf', 'type': 'pdf'})
    assert r.status_code == 200
    body = r.json()
    assert body['type'] == 'PDF'
    assert body['courseId'] == course['id']


def test_add_resource_validation(course, professor):
    c, _ = professor
    url = f"/courses/{course['id']}/resources"
    assert c.post(url, json={'title': 'Slides', 'url': 'https://example.com'}).status_code == 400
    r = c.post(url, json={'title': 'Slides', 'url': 'https://example.com', 'type': 'AUDIO'})
    assert r.status_code == 400
    assert r.json() == {'message': 'type must be one of PDF, LINK, VIDEO'}


def test_only_owner_adds_resources(course, student):
    c, _ = student
    r = c.post(f"/courses/{course['id']}/resources", json={'title': 'x', 'url': 'y', 'type': 'LINK'})
    assert r.status_code == 403


def test_resources_and_comments_are_newest_first(course, professor, student):
    p, _ = professor
    s, s_user = student
    cid = course['id']
    for title in ('first', 'second', 'third'):
        assert p.post(f'/courses/{cid}/resources', json={'title': title, 'url': 'https://e.x', 'type': 'LINK'}).status_code == 200
    for text in ('one', 'two'):
        assert s.post(f'/courses/{cid}/comments', json={'content': text}).status_code == 200
    body = anonymous.get(f'/courses/{cid}').json()
    assert [r['title'] for r in body['resources']] == ['third', 'second', 'first']
    assert [c['content'] for c in body['comments']] == ['two', 'one']
    assert body['comments'][0]['author'] == {'id': s_user['id'], 'name': 'Student'}
    assert body['comments'][0]['authorId'] == s_user['id']


def test_comments(course, student, professor):
    s, s_user = student
    p, _ = professor
    cid = course['id']
    assert s.post(f'/courses/{cid}/comments', json={'content': '   '}).status_code == 400
    assert s.post('/courses/999/comments', json={'content': 'hi'}).status_code == 404
    r = s.post(f'/courses/{cid}/comments', json={'content': ' Great course '})
    assert r.status_code == 200
    comment = r.json()
    assert comment['content'] == 'Great course'
    assert comment['authorId'] == s_user['id']

    # the course owner is not the comment author
    r = p.delete(f"/comments/{comment['id']}")
    assert r.status_code == 403
    assert r.json() == {'message': 'You do not have access to this comment'}

    r = s.delete(f"/comments/{comment['id']}")
    assert r.status_code == 200
    assert r.json() == {'message': 'Deleted'}
    assert s.delete(f"/comments/{comment['id']}").status_code == 404


def test_delete_course_cascades(course, professor, student):
    p, _ = professor
    s, _ = student
    cid = course['id']
    resource = p.post(f'/courses/{cid}/resources', json={'title': 'r', 'url': 'u', 'type': 'VIDEO'}).json()
    comment = s.post(f'/courses/{cid}/comments', json={'content': 'c'}).json()

    r = p.delete(f'/courses/{cid}')
    assert r.status_code == 200
    assert r.json() == {'message': 'Deleted'}
    assert anonymous.get(f'/courses/{cid}').status_code == 404
    assert p.delete(f"/resources/{resource['id']}").status_code == 404
    assert s.delete(f"/comments/{comment['id']}").status_code == 404
    assert anonymous.get('/courses').json() == []


def test_unknown_route_uses_message_body():
    r = anonymous.get('/nope')
    assert r.status_code == 404
    assert 'message' in r.json()


def test_openapi_documents_request_bodies():
    paths = anonymous.get('/openapi.json').json()['paths']
    expected = {
        ('/auth/register', 'post'): {'email', 'password', 'name', 'role'},
        ('/auth/login', 'post'): {'email', 'password'},
        ('/courses', 'post'): {'title', 'description', 'category'},
        ('/courses/{course_id}', 'put'): {'title', 'description', 'category'},
        ('/courses/{course_id}/resources', 'post'): {'title', 'url', 'type'},
        ('/courses/{course_id}/comments', 'post'): {'content'},
    }
    for (path, method), fields in expected.items():
        schema = paths[path][method]['requestBody']['content']['application/json']['schema']
        assert set(schema['properties']) == fields

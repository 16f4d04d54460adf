def test_index(client):
    res = client.get('/')
    assert res.status_code == 200
    assert 'message' in res.get_json()


def test_health_counts(client, registry):
    registry.join_pvp('a')
    data = client.get('/health').get_json()
    assert data['status'] == 'ok'
    assert data['matches'] == 1
    assert data['ticks'] == 0


def test_list_matches(client, registry):
    assert client.get('/api/matches').get_json() == []
    registry.join_vs_ai('a', 'hard')
    registry.join_pvp('b')
    data = client.get('/api/matches').get_json()
    assert len(data) == 2
    by_state = {m['state']: m for m in data}
    assert by_state['ready']['ai']['difficulty'] == 'hard'
    assert by_state['waiting']['ai'] is None
    assert by_state['waiting']['players'] == 1


def test_match_state(client, registry):
    match, _ = registry.join_vs_ai('a')
    res = client.get(f'/api/matches/{match.id}/state')
    assert res.status_code == 200
    data = res.get_json()
    assert data['id'] == match.id
    assert data['ball']['x'] == 400
    assert data['player1']['x'] == 10
    assert data['player2']['x'] == 790
    assert data['state'] == 'ready'


def test_match_state_not_found(client):
    res = client.get('/api/matches/room404/state')
    assert res.status_code == 404
    assert res.get_json() == {'error': 'Match not found'}


def test_difficulties(client):
    data = client.get('/api/matches/difficulties').get_json()
    assert set(data) == {'easy', 'medium', 'hard'}
    assert data['hard']['refresh_period'] == 0.5


def test_simulate_command(flask_app):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['simulate', '--difficulty', 'hard', '--opponent', 'easy', '--ticks', '300', '--seed', '1'])
    assert result.exit_code == 0
    assert 'after 300 ticks' in result.output


def test_simulate_command_rejects_unknown_level(flask_app):
    runner = flask_app.test_cli_runner()
    result = runner.invoke(args=['simulate', '--difficulty', 'mythic'])
    assert result.exit_code != 0

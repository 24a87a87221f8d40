def _book(client, rooms, /, **extra):
    payload = {
        'check_in_date': '2026-03-01',
        'check_out_date': '2026-03-04',
        'rooms': [rooms[0]['id']],
        'guest': {'name': 'Nimal Perera', 'nic_number': '901234567V'},
    }
    payload.update(extra)
    return client.post('/api/reservations', json=payload)


def test_health(client):
    resp = client.get('/api/health')
    assert resp.status_code == 200
    assert resp.get_json()['hotel'] == 'Lagoon View Hotel'


def test_room_crud(client):
    resp = client.post('/api/rooms', json={'number': '501', 'type': 'Suite', 'facilities': 'AC, Jacuzzi'})
    assert resp.status_code == 201
    room = resp.get_json()['data']
    assert room['facilities'] == ['AC', 'Jacuzzi']

    resp = client.patch(f"/api/rooms/{room['id']}", json={'price': 30000})
    assert resp.get_json()['data']['price'] == 30000

    assert client.get('/api/rooms?q=jacuzzi').get_json()['data'][0]['number'] == '501'
    assert client.delete(f"/api/rooms/{room['id']}").status_code == 200
    assert client.get(f"/api/rooms/{room['id']}").status_code == 404


def test_room_requires_number_and_type(client):
    resp = client.post('/api/rooms', json={'number': '501'})
    assert resp.status_code == 400
    assert resp.get_json() == {'success': False, 'message': 'Room number and type are required.'}


def test_available_rooms(client, rooms):
    _book(client, rooms)
    data = client.get('/api/rooms/available?from=2026-03-02&to=2026-03-03').get_json()['data']
    assert [r['number'] for r in data] == ['102', '201']
    assert client.get('/api/rooms/available?from=2026-03-02&to=2026-03-02').get_json()['data'] == []


def test_booking_and_billing_flow(client, rooms):
    resp = _book(client, rooms)
    assert resp.status_code == 201
    ledger = resp.get_json()['ledger']
    reservation_id = ledger['reservation']['id']
    assert ledger['reservation']['code'].startswith('RES-')
    assert ledger['summary']['total'] == 15000

    resp = client.post(f'/api/reservations/{reservation_id}/foods',
                       json={'title': 'Fried Rice', 'qty': 1, 'rate': 1200})
    assert resp.status_code == 201
    resp = client.post(f'/api/reservations/{reservation_id}/payments',
                       json={'type': 'Advance', 'method': 'Cash', 'amount': 10000, 'date': '2026-03-01'})
    summary = resp.get_json()['ledger']['summary']
    assert (summary['total'], summary['paid'], summary['balance']) == (16200, 10000, 6200)

    defaults = client.get(f'/api/reservations/{reservation_id}/payments/defaults?type=Settlement').get_json()['data']
    assert defaults['amount'] == 6200
    resp = client.post(f'/api/reservations/{reservation_id}/payments', json=defaults)
    assert resp.get_json()['ledger']['summary']['balance'] == 0


def test_edit_and_delete_line_item(client, rooms):
    reservation_id = _book(client, rooms).get_json()['ledger']['reservation']['id']
    item = client.post(f'/api/reservations/{reservation_id}/services',
                       json={'title': 'Breakfast', 'qty': 2, 'rate': 500}).get_json()['ledger']['services'][0]
    assert item['amount'] == 1000

    resp = client.patch(f"/api/reservations/{reservation_id}/services/{item['id']}", json={'qty': 3})
    assert resp.get_json()['ledger']['services'][0]['amount'] == 1500

    resp = client.delete(f"/api/reservations/{reservation_id}/services/{item['id']}")
    assert resp.get_json()['ledger']['services'] == []


def test_unknown_reservation_is_404(client):
    resp = client.get('/api/reservations/404')
    assert resp.status_code == 404
    assert resp.get_json()['success'] is False


def test_cancel_blocks_further_charges(client, rooms):
    reservation_id = _book(client, rooms).get_json()['ledger']['reservation']['id']
    resp = client.post(f'/api/reservations/{reservation_id}/cancel')
    assert resp.status_code == 200
    ledger = resp.get_json()['ledger']
    assert ledger['reservation']['status'] == 'cancelled'
    assert ledger['accepts_charges'] is False

    resp = client.post(f'/api/reservations/{reservation_id}/foods', json={'title': 'Koththu', 'qty': 1, 'rate': 1100})
    assert resp.status_code == 409
    assert client.post(f'/api/reservations/{reservation_id}/cancel').status_code == 409

    listed = client.get('/api/reservations?status=cancelled').get_json()['data']
    assert [r['id'] for r in listed] == [reservation_id]


def test_double_booking_conflicts(client, rooms):
    _book(client, rooms)
    resp = _book(client, rooms, guest={'name': 'Other', 'passport_number': 'X1'})
    assert resp.status_code == 409


def test_guest_lookup(client, rooms):
    _book(client, rooms)
    guest = client.get('/api/guests?document=901234567V').get_json()['data']
    assert guest['name'] == 'Nimal Perera'
    assert client.get('/api/guests?document=nope').get_json()['data'] is None


def test_catalog_endpoints(client):
    resp = client.post('/api/catalog/service', json={'title': 'Laundry', 'rate': 500})
    assert resp.status_code == 201
    assert client.post('/api/catalog/food', json={'title': 'Koththu', 'rate': 1100}).status_code == 201

    catalog = client.get('/api/catalog').get_json()['data']
    assert [s['title'] for s in catalog['services']] == ['Laundry']
    prefill = client.get('/api/catalog/food/prefill?title=Koththu').get_json()['data']
    assert prefill == {'title': 'Koththu', 'qty': 1, 'rate': 1100}
    assert client.get('/api/catalog/minibar').status_code == 404


def test_invoice_html_and_json(client, rooms):
    reservation_id = _book(client, rooms).get_json()['ledger']['reservation']['id']
    resp = client.get(f'/api/reservations/{reservation_id}/invoice')
    assert resp.status_code == 200
    html = resp.get_data(as_text=True)
    assert 'Lagoon View Hotel' in html
    assert '15,000.00' in html
    assert 'LKR 15,000.00' in html

    bill = client.get(f'/api/reservations/{reservation_id}/invoice?format=json').get_json()['data']
    assert bill['rooms']['body'][0][0] == '101'
    assert bill['services']['body'] == [['—', '—', '—', '0.00']]
    assert bill['totals']['body'][-1] == ['Balance', '15,000.00']


def test_expenses_and_reports(client, rooms):
    reservation_id = _book(client, rooms).get_json()['ledger']['reservation']['id']
    client.post(f'/api/reservations/{reservation_id}/payments',
                json={'type': 'Advance', 'method': 'Cash', 'amount': 10000, 'date': '2026-03-01'})
    resp = client.post('/api/expenses', json={'title': 'Electricity', 'category': 'Utilities',
                                             'amount': 4000, 'date': '2026-03-02'})
    assert resp.status_code == 201
    assert client.post('/api/expenses', json={'title': 'Nothing', 'amount': 0}).status_code == 400

    listed = client.get('/api/expenses?from=2026-03-01&to=2026-03-31').get_json()
    assert [e['title'] for e in listed['data']] == ['Electricity']

    report = client.get('/api/reports/summary?from=2026-03-01&to=2026-03-31').get_json()
    assert report['totals'] == {'total_payments': 10000, 'total_expenses': 4000, 'net': 6000}
    assert [r['amount'] for r in report['ledger']] == [10000, -4000]

    resp = client.get('/api/reports/ledger.csv?from=2026-03-01&to=2026-03-31')
    assert resp.mimetype == 'text/csv'
    assert 'ledger_2026-03-01_to_2026-03-31.csv' in resp.headers['Content-Disposition']
    assert resp.get_data(as_text=True).splitlines()[0] == 'ID,Type,Title,CategoryOrMethod,Amount,Date,Notes'

    resp = client.get('/api/reports/payments.csv?from=2026-04-01&to=2026-04-30')
    assert len(resp.get_data(as_text=True).splitlines()) == 1


def test_non_json_body_rejected(client):
    resp = client.post('/api/rooms', data='number=1', content_type='text/plain')
    assert resp.status_code == 400


def test_non_finite_amounts_are_rejected(client, rooms):
    reservation_id = _book(client, rooms).get_json()['ledger']['reservation']['id']
    resp = client.post(f'/api/reservations/{reservation_id}/payments',
                       json={'type': 'Advance', 'method': 'Cash', 'amount': 'NaN'})
    assert resp.status_code == 400
    resp = client.post(f'/api/reservations/{reservation_id}/foods', json={'title': 'Koththu', 'qty': 0, 'rate': 'Infinity'})
    assert resp.status_code == 400
    resp = client.post('/api/expenses', json={'title': 'Gas', 'category': 'Utilities', 'amount': 'Infinity'})
    assert resp.status_code == 400

    summary = client.get(f'/api/reservations/{reservation_id}').get_json()['ledger']['summary']
    assert (summary['paid'], summary['balance']) == (0, 15000)


def test_rejected_booking_leaves_room_free(client, rooms):
    resp = _book(client, rooms, payments=[{'type': 'Advance', 'method': 'Cash', 'amount': 'nan'}])
    assert resp.status_code == 400
    assert client.get('/api/reservations').get_json()['data'] == []
    data = client.get('/api/rooms/available?from=2026-03-01&to=2026-03-04').get_json()['data']
    assert '101' in [r['number'] for r in data]


def test_booked_room_cannot_be_deleted(client, rooms):
    _book(client, rooms)
    resp = client.delete(f"/api/rooms/{rooms[0]['id']}")
    assert resp.status_code == 409
    assert resp.get_json()['success'] is False
    assert client.get(f"/api/rooms/{rooms[0]['id']}").status_code == 200


def test_guest_list_filters(client, rooms):
    _book(client, rooms)
    _book(client, rooms, rooms=[rooms[2]['id']],
          guest={'name': 'Sarah Jones', 'passport_number': 'N1234567', 'country': 'UK'})

    assert [g['name'] for g in client.get('/api/guests').get_json()['data']] == ['Nimal Perera', 'Sarah Jones']
    assert [g['name'] for g in client.get('/api/guests?q=n1234').get_json()['data']] == ['Sarah Jones']
    assert [g['name'] for g in client.get('/api/guests?country=UK').get_json()['data']] == ['Sarah Jones']


def test_reservation_list_filters(client, rooms):
    _book(client, rooms)
    _book(client, rooms, rooms=[rooms[2]['id']], check_in_date='2026-03-10', check_out_date='2026-03-12',
          guest={'name': 'Sarah Jones', 'passport_number': 'N1234567'})

    def guest_names(query):
        return [r['guest_name'] for r in client.get(f'/api/reservations{query}').get_json()['data']]

    assert guest_names('') == ['Sarah Jones', 'Nimal Perera']
    assert guest_names('?q=deluxe') == ['Sarah Jones']
    assert guest_names('?q=nimal') == ['Nimal Perera']
    assert guest_names('?from=2026-03-01&to=2026-03-05') == ['Nimal Perera']
    assert guest_names('?from=2026-03-10') == ['Sarah Jones']

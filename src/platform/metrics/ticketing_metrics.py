from prometheus_client import Counter, Gauge, Histogram


class TicketingMetrics:
    """
    Business metrics for the reservation and purchase flow.

    Exposed through the `/metrics` endpoint of the app factory.
    """

    def __init__(self) -> None:
        # ========== Reservation ==========
        self.reservation_requests = Counter(
            'ticket_reservation_requests_total',
            'Reservation attempts by outcome',
            ['ticket_type_id', 'result'],  # result: success / error code
        )

        self.reservations_released = Counter(
            'ticket_reservations_released_total',
            'Reservations returned to inventory',
            ['reason'],  # reason: released / expired
        )

        self.tickets_held = Gauge(
            'ticket_type_held_quantity',
            'Tickets currently held by active reservations',
            ['ticket_type_id'],
        )

        # ========== Purchase ==========
        self.purchase_requests = Counter(
            'ticket_purchase_requests_total',
            'Purchase attempts by outcome',
            ['event_id', 'result'],
        )

        self.purchase_duration = Histogram(
            'ticket_purchase_duration_seconds',
            'End to end purchase orchestration time',
            ['result'],
            buckets=[0.01, 0.05, 0.1, 0.25, 0.5, 1.0, 2.0, 5.0, 10.0],
        )

        self.tickets_issued = Counter(
            'tickets_issued_total',
            'Tickets minted by completed orders',
            ['event_id'],
        )

        self.saga_compensations = Counter(
            'purchase_saga_compensations_total',
            'Compensation executions by step and outcome',
            ['step', 'result'],
        )

        # ========== Refund & entry ==========
        self.refund_requests = Counter(
            'order_refund_requests_total',
            'Refund attempts by outcome',
            ['result'],
        )

        self.ticket_scans = Counter(
            'ticket_scans_total',
            'Entry scans by outcome',
            ['event_id', 'result'],
        )

    def record_reservation(self, *, ticket_type_id: int, result: str) -> None:
        self.reservation_requests.labels(ticket_type_id=str(ticket_type_id), result=result).inc()

    def record_release(self, *, reason: str) -> None:
        self.reservations_released.labels(reason=reason).inc()

    def set_held(self, *, ticket_type_id: int, held: int) -> None:
        self.tickets_held.labels(ticket_type_id=str(ticket_type_id)).set(held)

    def record_purchase(self, *, event_id: int, result: str, duration: float) -> None:
        self.purchase_requests.labels(event_id=str(event_id), result=result).inc()
        self.purchase_duration.labels(result=result).observe(duration)

    def record_tickets_issued(self, *, event_id: int, count: int) -> None:
        self.tickets_issued.labels(event_id=str(event_id)).inc(count)

    def record_compensation(self, *, step: str, result: str) -> None:
        self.saga_compensations.labels(step=step, result=result).inc()

    def record_refund(self, *, result: str) -> None:
        self.refund_requests.labels(result=result).inc()

    def record_scan(self, *, event_id: int, result: str) -> None:
        self.ticket_scans.labels(event_id=str(event_id), result=result).inc()


metrics = TicketingMetrics()

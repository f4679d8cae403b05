from aupgrab.models import Delivery


class TrackingRepository:
    def __init__(self, session):
        self.session = session

    def add(self, **fields):
        record = Delivery(**fields)
        self.session.add(record)
        self.session.flush()
        return record

    def get(self, order_id):
        if not order_id:
            return None
        return self.session.query(Delivery).filter_by(order_id=order_id).first()

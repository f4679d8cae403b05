from aupgrab.models import Message


class MessageRepository:
    def __init__(self, session):
        self.session = session

    def add(self, **fields):
        message = Message(**fields)
        self.session.add(message)
        self.session.flush()
        return message

    def list_for_order(self, order_id):
        return (
            self.session.query(Message)
            .filter_by(order_id=order_id)
            .order_by(Message.id.asc())
            .all()
        )

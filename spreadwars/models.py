from spreadwars import db

class Player(db.Model):
    __tablename__ = 'player'
    id = db.Column(db.Integer, primary_key=True)
    name = db.Column(db.String(64), unique=True, nullable=False, index=True)
    color = db.Column(db.String(16), nullable=True)  # red, blue
    match_id = db.Column(db.Integer, nullable=True, index=True)

    def to_dict(self):
        return {
            'name': self.name,
        }

    @classmethod
    def ordered(cls):
        """Registered players in the order they signed up."""
        return cls.query.order_by(cls.id).all()

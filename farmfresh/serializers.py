from farmfresh.models.base import ensure_utc


def _iso(value):
    value = ensure_utc(value)
    return value.isoformat() if value else None


def product_to_dict(product):
    return {
        "id": product.id,
        "name": product.name,
        "description": product.description,
        "category": product.category,
        "price": str(product.price),
        "market_price": str(product.market_price) if product.market_price is not None else None,
        "stock_quantity": product.stock_quantity,
        "unit": product.unit,
        "image_url": product.image_url,
        "is_organic": product.is_organic,
        "rating": float(product.rating or 0),
        "total_reviews": product.total_reviews,
        "farmer_id": product.farmer_id,
        "farm_name": product.farmer.farm_name if product.farmer else None,
    }


def review_to_dict(review):
    return {
        "id": review.id,
        "user_id": review.user_id,
        "user_name": review.user.name if review.user else None,
        "rating": review.rating,
        "comment": review.comment,
        "updated_at": _iso(review.updated_at),
    }


def farmer_to_dict(profile, include_banking=True):
    data = {
        "id": profile.id,
        "user_id": profile.user_id,
        "farm_name": profile.farm_name,
        "location": profile.location,
        "district": profile.district,
        "address": profile.address,
        "farm_size": str(profile.farm_size) if profile.farm_size is not None else None,
        "certification": profile.certification,
        "products_offered": list(profile.products_offered or []),
        "experience": profile.experience,
        "is_verified": profile.is_verified,
        "rating": float(profile.rating or 0),
        "total_reviews": profile.total_reviews,
    }
    if include_banking:
        data.update(
            bank_name=profile.bank_name,
            account_number=profile.account_number,
            account_holder_name=profile.account_holder_name,
            mobile_banking_provider=profile.mobile_banking_provider,
            mobile_banking_number=profile.mobile_banking_number,
        )
    return data


def order_to_dict(order):
    return {
        "id": order.id,
        "status": order.status,
        "order_date": _iso(order.order_date),
        "delivery_date": _iso(order.delivery_date),
        "delivery_address": order.delivery_address,
        "payment_method": order.payment_method,
        "is_paid": order.is_paid,
        "total_price": str(order.total_price),
        "items": [
            {
                "product_id": item.product_id,
                "name": item.product_name,
                "quantity": item.quantity,
                "price": str(item.price),
                "subtotal": str(item.subtotal),
            }
            for item in order.items
        ],
    }


def auction_to_dict(auction):
    return {
        "id": auction.id,
        "farmer_id": auction.farmer_id,
        "product_name": auction.product_name,
        "description": auction.description,
        "category": auction.category,
        "starting_price": str(auction.starting_price),
        "current_bid": str(auction.current_bid),
        "highest_bidder_id": auction.highest_bidder_id,
        "total_bids": auction.total_bids,
        "quantity": auction.quantity,
        "unit": auction.unit,
        "start_time": _iso(auction.start_time),
        "end_time": _iso(auction.end_time),
        "status": auction.status,
    }

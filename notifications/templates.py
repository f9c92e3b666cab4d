from jinja2 import Environment, select_autoescape

_env = Environment(autoescape=select_autoescape(default=True, default_for_string=True))

BUSINESS_ORDER_TEMPLATE = _env.from_string("""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <h2 style="color: #333; border-bottom: 2px solid #8B4513; padding-bottom: 10px;">
    New Order Received
  </h2>

  <div style="background: #f9f9f9; padding: 20px; border-radius: 8px; margin: 20px 0;">
    <h3 style="color: #8B4513; margin-top: 0;">Payment Details</h3>
    <p><strong>Payment ID:</strong> {{ payment_id }}</p>
    <p><strong>Amount:</strong> ${{ amount }}</p>
    <p><strong>Payment Method:</strong> {{ payment_method }}</p>
    <p><strong>Customer:</strong> {{ customer_name }}</p>
    <p><strong>Email:</strong> {{ customer_email }}</p>
    <p><strong>Date:</strong> {{ order_date }}</p>
  </div>

  <div style="background: #e8f5e8; padding: 15px; border-radius: 8px; margin: 20px 0;">
    <p style="margin: 0; color: #2d5a2d;">
      <strong>Action Required:</strong> Please process this order and prepare for shipment.
    </p>
  </div>
</div>
""")

CUSTOMER_RECEIPT_TEMPLATE = _env.from_string("""
<div style="font-family: Arial, sans-serif; max-width: 600px; margin: 0 auto;">
  <div style="background: linear-gradient(135deg, #8B4513, #A0522D); color: white; padding: 30px; text-align: center; border-radius: 8px 8px 0 0;">
    <h1 style="margin: 0; font-size: 28px;">Thank You for Your Order!</h1>
    <p style="margin: 10px 0 0 0; font-size: 18px;">Payment ID: {{ payment_id }}</p>
  </div>

  <div style="padding: 30px; background: white; border: 1px solid #ddd; border-top: none;">
    <p style="font-size: 16px; color: #333;">Hi {{ customer_name }},</p>
    <p style="font-size: 16px; color: #333;">
      Thank you for choosing {{ store_name }}! We've received your payment of
      <strong>${{ amount }}</strong> via {{ payment_method }} and are preparing your order for shipment.
    </p>

    <div style="background: #e8f5e8; padding: 15px; border-radius: 8px; margin: 20px 0;">
      <h4 style="color: #2d5a2d; margin-top: 0;">What's Next?</h4>
      <ul style="color: #2d5a2d; margin: 0; padding-left: 20px;">
        <li>We'll process your order within 24 hours</li>
        <li>You'll receive a tracking number via email</li>
        <li>Free worldwide shipping included</li>
        <li>Expected delivery: 5-7 business days</li>
      </ul>
    </div>

    <div style="text-align: center; margin: 30px 0;">
      <a href="{{ whatsapp_url }}" style="background: #25D366; color: white; padding: 12px 24px; text-decoration: none; border-radius: 6px; display: inline-block;">
        Contact us on WhatsApp
      </a>
    </div>

    <p style="color: #666; font-size: 14px; text-align: center;">
      Questions? Reply to this email or contact us on WhatsApp for instant support.
    </p>
  </div>
</div>
""")

#!/usr/bin/env python3
"""
Seed photobox products from a CSV file via the Storefront admin API

This script:
1. Reads a product CSV
2. Maps category slugs to storefront categories (creating missing ones)
3. Uploads product images from URLs via API
4. Creates products via API (triggers Kafka events)

Expected CSV columns:
    name, category, price, original_price, description, short_description,
    sku, stock, is_featured, image_urls

`image_urls` holds one or more URLs separated by `|`. Prices are whole rupiah.

Usage:
    python seed_data.py \
        --csv datasets/photobox_products.csv \
        --token YOUR_ADMIN_AUTH_TOKEN \
        --storefront-url http://localhost:8000 \
        --count 50
"""

import csv
import argparse
import requests
import time
import re
import logging
from typing import Dict, List, Optional, Any
from datetime import datetime
from concurrent.futures import ThreadPoolExecutor, as_completed

logging.basicConfig(
    level=logging.INFO,
    format='%(asctime)s - %(levelname)s - %(message)s',
    datefmt='%Y-%m-%d %H:%M:%S'
)
logger = logging.getLogger(__name__)

API_PREFIX = '/api/storefront'

TRUTHY = {'1', 'true', 'yes', 'y'}


def slugify(value: str) -> str:
    return re.sub(r'[^a-z0-9]+', '-', value.lower()).strip('-')


def parse_price(value: str) -> Optional[int]:
    """Parse '15.000', 'Rp 15.000' or '15000' into whole rupiah"""
    if not value:
        return None
    digits = re.sub(r'[^0-9]', '', value)
    return int(digits) if digits else None


class ProductMapper:
    """Maps CSV rows to the admin product schema"""

    def map_row(self, row: Dict[str, str], row_num: int) -> Dict[str, Any]:
        name = row.get('name', '').strip()
        if not name:
            raise ValueError(f"Row {row_num} has no product name")

        price = parse_price(row.get('price', ''))
        if price is None:
            raise ValueError(f"Row {row_num} ({name}) has no valid price")

        original_price = parse_price(row.get('original_price', ''))
        if original_price is not None and original_price <= price:
            original_price = None

        stock = row.get('stock', '').strip()
        image_urls = [u.strip() for u in row.get('image_urls', '').split('|') if u.strip()]

        return {
            'name': name[:200],
            'category_path': row.get('category', '').strip(),
            'description': row.get('description') or None,
            'short_description': row.get('short_description') or None,
            'price': price,
            'original_price': original_price,
            'sku': row.get('sku') or None,
            'stock_quantity': int(stock) if stock.isdigit() else 0,
            'is_featured': row.get('is_featured', '').strip().lower() in TRUTHY,
            'is_active': True,
            'image_urls': image_urls,
        }


class StorefrontAdminClient:
    """Client for the Storefront admin API"""

    def __init__(self, base_url: str, auth_token: str):
        self.base_url = base_url.rstrip('/')
        self.headers = {
            'Authorization': f'Bearer {auth_token}',
            'Content-Type': 'application/json',
        }
        self.category_cache: Dict[str, str] = {}

    def _url(self, path: str) -> str:
        return f'{self.base_url}{API_PREFIX}{path}'

    def get_categories(self) -> Dict[str, str]:
        """Get all categories and return mapping: slug/name -> UUID"""
        if self.category_cache:
            return self.category_cache

        logger.info(f"Fetching categories from {self._url('/admin/categories')}...")
        start_time = time.time()
        try:
            response = requests.get(self._url('/admin/categories'), headers=self.headers, timeout=10)
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            logger.error(f"✗ HTTP {e.response.status_code} error loading categories ({time.time() - start_time:.2f}s)")
            logger.error(f"  Response content: {e.response.text}")
            return {}
        except requests.exceptions.RequestException as e:
            logger.warning(f"✗ Failed to load categories: {e}. New categories will be created as needed.")
            return {}

        categories = response.json()
        for cat in categories:
            self.category_cache[cat['slug'].lower()] = cat['id']
            self.category_cache[cat['name'].lower()] = cat['id']
        logger.info(f"✓ Received {len(categories)} categories in {time.time() - start_time:.2f}s")
        return self.category_cache

    def resolve_category(self, category: str) -> Optional[str]:
        """Return the category UUID for a slug or name, creating the category if missing"""
        if not category:
            return None
        mapping = self.get_categories()
        key = category.lower()
        if key in mapping:
            return mapping[key]
        if slugify(category) in mapping:
            return mapping[slugify(category)]

        try:
            response = requests.post(
                self._url('/admin/categories'),
                headers=self.headers,
                json={'name': category, 'slug': slugify(category)},
                timeout=10
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            logger.warning(f"  ⚠ HTTP {e.response.status_code} creating category '{category}': {e.response.text}")
            return None
        except requests.exceptions.RequestException as e:
            logger.warning(f"  ⚠ Failed to create category '{category}': {e}")
            return None

        created = response.json()
        self.category_cache[created['slug'].lower()] = created['id']
        self.category_cache[created['name'].lower()] = created['id']
        logger.info(f"  ✓ Created category '{created['name']}'")
        return created['id']

    def upload_image(self, image_url: str, image_num: int = 0, total_images: int = 0) -> Optional[str]:
        """Upload image from URL and return public_id"""
        if not image_url.startswith(('http://', 'https://')):
            return None

        start_time = time.time()
        try:
            response = requests.post(
                self._url('/admin/images/from-url'),
                headers=self.headers,
                json={'url': image_url},
                timeout=30
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            logger.warning(f"    ↳ Image {image_num}/{total_images}: HTTP {e.response.status_code} uploading {image_url[:50]}...")
            logger.warning(f"      Response content: {e.response.text}")
            return None
        except requests.exceptions.Timeout:
            logger.warning(f"    ↳ Image {image_num}/{total_images}: Timeout uploading {image_url[:50]}... ({time.time() - start_time:.2f}s)")
            return None
        except requests.exceptions.RequestException as e:
            logger.warning(f"    ↳ Image {image_num}/{total_images}: Failed to upload {image_url[:50]}...: {e}")
            return None

        public_id = response.json().get('public_id')
        logger.info(f"    ↳ Image {image_num}/{total_images}: Uploaded {public_id} ({time.time() - start_time:.2f}s)")
        return public_id

    def create_product(self, product_data: Dict[str, Any]) -> Optional[str]:
        """Create a product and return product ID"""
        start_time = time.time()
        try:
            response = requests.post(
                self._url('/admin/products'),
                headers=self.headers,
                json=product_data,
                timeout=10
            )
            response.raise_for_status()
        except requests.exceptions.HTTPError as e:
            if e.response.status_code == 409:
                logger.warning(f"  ⚠ Product '{product_data.get('name')}' already exists (409 Conflict)")
            else:
                logger.error(f"  ✗ HTTP {e.response.status_code}: Unexpected status code ({time.time() - start_time:.2f}s)")
                logger.error(f"    Response content: {e.response.text}")
            return None
        except requests.exceptions.Timeout:
            logger.error(f"  ✗ Timeout creating product (exceeded 10s)")
            return None
        except requests.exceptions.RequestException as e:
            logger.error(f"  ✗ Error creating product: {str(e)[:200]}")
            return None

        product_id = response.json().get('id')
        logger.info(f"  ✓ Product created: ID={product_id} ({time.time() - start_time:.2f}s)")
        return product_id


def load_csv(file_path: str) -> List[Dict[str, str]]:
    """Load CSV file and return list of rows"""
    logger.info(f"Reading CSV file: {file_path}")
    with open(file_path, 'r', encoding='utf-8') as f:
        sample = f.read(1024)
        f.seek(0)
        delimiter = csv.Sniffer().sniff(sample, delimiters=',;\t').delimiter
        rows = [
            {k.strip().lower(): (v.strip() if v else '') for k, v in row.items() if k}
            for row in csv.DictReader(f, delimiter=delimiter)
        ]
    logger.info(f"✓ Loaded {len(rows):,} rows from CSV")
    return rows


def upload_images(client: StorefrontAdminClient, image_urls: List[str], max_parallel: int) -> List[str]:
    """Upload images in parallel, keeping the CSV order of the ones that succeed"""
    results: Dict[int, str] = {}
    total = len(image_urls)
    with ThreadPoolExecutor(max_workers=max(1, min(max_parallel, total))) as executor:
        future_to_index = {
            executor.submit(client.upload_image, url, idx + 1, total): idx
            for idx, url in enumerate(image_urls)
        }
        for future in as_completed(future_to_index):
            public_id = future.result()
            if public_id:
                results[future_to_index[future]] = public_id
    return [results[idx] for idx in sorted(results)]


def main():
    parser = argparse.ArgumentParser(
        description='Seed photobox products from a CSV file via the Storefront admin API',
        formatter_class=argparse.RawDescriptionHelpFormatter,
        epilog="""
Example:
    python seed_data.py \\
        --csv datasets/photobox_products.csv \\
        --token "YOUR_ADMIN_AUTH_TOKEN" \\
        --storefront-url http://localhost:8000 \\
        --count 50
        """
    )
    parser.add_argument('--csv', required=True, help='Path to product CSV file')
    parser.add_argument('--token', required=True, help='Admin auth token (from /auth/sign-in)')
    parser.add_argument('--storefront-url', default='http://localhost:8000', help='Storefront service URL')
    parser.add_argument('--count', type=int, default=0, help='Number of products to create (0 = all rows)')
    parser.add_argument('--delay', type=float, default=0.2, help='Delay between API calls (seconds)')
    parser.add_argument('--skip-images', action='store_true', help='Skip image uploads')
    parser.add_argument('--max-images', type=int, default=5, help='Maximum images per product')
    parser.add_argument('--max-parallel-images', type=int, default=5, help='Maximum parallel image uploads')

    args = parser.parse_args()

    script_start_time = time.time()
    logger.info("=" * 70)
    logger.info("PHOTOBOX PRODUCT SEEDING SCRIPT")
    logger.info("=" * 70)
    logger.info(f"Started at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")
    logger.info(f"  CSV file: {args.csv}")
    logger.info(f"  Storefront URL: {args.storefront_url}")
    logger.info(f"  Target count: {args.count or 'all'}")
    logger.info(f"  Skip images: {args.skip_images}")

    rows = load_csv(args.csv)
    if not rows:
        logger.error("✗ CSV file is empty or could not be read")
        return
    if args.count:
        rows = rows[:args.count]

    mapper = ProductMapper()
    client = StorefrontAdminClient(args.storefront_url, args.token)
    client.get_categories()

    success_count = 0
    error_count = 0
    images_uploaded = 0

    for i, row in enumerate(rows, 1):
        logger.info(f"\n[{i}/{len(rows)}] Processing product...")
        try:
            product_data = mapper.map_row(row, i)
        except ValueError as e:
            error_count += 1
            logger.warning(f"  ✗ Skipping row: {e}")
            continue

        logger.info(f"  → Name: {product_data['name'][:60]}")
        logger.info(f"  → Price: Rp {product_data['price']:,}".replace(',', '.'))

        category_path = product_data.pop('category_path')
        product_data['category_id'] = client.resolve_category(category_path)
        if category_path and not product_data['category_id']:
            logger.warning(f"  → Category: {category_path} → No mapping found")

        image_urls = product_data.pop('image_urls')[:args.max_images]
        images: List[str] = []
        if image_urls and not args.skip_images:
            images = upload_images(client, image_urls, args.max_parallel_images)
            images_uploaded += len(images)
            logger.info(f"  ✓ Uploaded {len(images)}/{len(image_urls)} images")
        product_data['images'] = images

        try:
            if client.create_product(product_data):
                success_count += 1
            else:
                error_count += 1
        except KeyboardInterrupt:
            logger.warning(f"\n⚠ Interrupted by user at product {i}/{len(rows)}")
            break

        time.sleep(args.delay)

    total_time = time.time() - script_start_time
    logger.info(f"\n{'=' * 70}")
    logger.info("SEEDING SUMMARY")
    logger.info(f"{'=' * 70}")
    logger.info(f"Total time: {total_time:.1f}s")
    logger.info(f"  ✓ Success: {success_count:,}")
    logger.info(f"  ✗ Errors: {error_count:,}")
    if not args.skip_images:
        logger.info(f"  Images uploaded: {images_uploaded:,}")
    logger.info(f"Completed at: {datetime.now().strftime('%Y-%m-%d %H:%M:%S')}")


if __name__ == '__main__':
    main()
